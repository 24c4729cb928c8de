"""Configuration models with sensible defaults."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class HashMode(str, Enum):
    """How fetched streams are joined and hashed."""

    # one stream at a time, bounded memory and CPU
    SEQUENTIAL = "sequential"
    # every stream at once, peak usage scales with the link count
    PARALLEL = "parallel"


class ClusterMode(str, Enum):
    """Partition semantics used by the clusterer."""

    # single pass, order-dependent, non-transitive
    GREEDY = "greedy"
    # connected components of the similarity graph (opt-in)
    TRANSITIVE = "transitive"


@dataclass(slots=True)
class ClusterConfig:
    # Fetch
    connect_timeout: float = 3.0
    read_timeout: float = 3.0
    max_attempts: int = 5
    max_fetch_workers: int | None = None

    # Hash
    hash_mode: HashMode = HashMode.SEQUENTIAL
    hash_workers: int | None = None
    hash_size: int = 8

    # Cluster
    cluster_mode: ClusterMode = ClusterMode.GREEDY
    similarity_threshold: float = 0.90

    # Artifacts
    cache_path: str = "hashes.jsonl"
    result_path: str = "result.json"
    report_path: str | None = "report.html"
