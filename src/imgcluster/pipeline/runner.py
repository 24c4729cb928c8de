"""Fetch -> hash -> cache -> cluster orchestration."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime, timezone

from imgcluster.core.clusterer import find_clusters
from imgcluster.core.hasher import hash_result
from imgcluster.io.cache_io import load_cache, save_cache
from imgcluster.io.result_io import save_clusters
from imgcluster.models.config import ClusterConfig, HashMode
from imgcluster.models.fingerprint import CacheMeta, Cluster, FetchResult, FingerprintTable
from imgcluster.net.fetcher import fetch_all

logger = logging.getLogger(__name__)

# (processed, total, link)
ProgressCallback = Callable[[int, int, str], None]


def log_progress(processed: int, total: int, link: str) -> None:
    pct = (processed / total) * 100.0 if total else 100.0
    logger.info("Progress: %.2f%% (%d/%d) %s", pct, processed, total, link)


def _join_and_hash(link: str, future: Future[FetchResult], hash_size: int) -> str | None:
    try:
        result = future.result()
    except Exception as exc:  # noqa: BLE001 - one broken fetch must not abort the batch
        result = FetchResult.failure(link, f"{type(exc).__name__}: {exc}")
    return hash_result(result, hash_size)


def _hash_sequential(
    futures: dict[str, Future[FetchResult]],
    config: ClusterConfig,
    on_progress: ProgressCallback,
) -> FingerprintTable:
    table: FingerprintTable = {}
    total = len(futures)
    for idx, (link, future) in enumerate(futures.items(), start=1):
        logger.debug("Hashing %s", link)
        table[link] = _join_and_hash(link, future, config.hash_size)
        on_progress(idx, total, link)
    return table


def _hash_parallel(
    futures: dict[str, Future[FetchResult]],
    config: ClusterConfig,
    on_progress: ProgressCallback,
) -> FingerprintTable:
    total = len(futures)
    workers = config.hash_workers or max(1, total)
    partial: dict[str, str | None] = {}

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="hash") as executor:
        tasks: dict[Future[str | None], str] = {
            executor.submit(_join_and_hash, link, future, config.hash_size): link
            for link, future in futures.items()
        }
        # only this thread writes to ``partial``
        for done, task in enumerate(as_completed(tasks), start=1):
            link = tasks[task]
            partial[link] = task.result()
            on_progress(done, total, link)

    return {link: partial[link] for link in futures}


def build_fingerprint_table(
    links: Sequence[str],
    config: ClusterConfig | None = None,
    on_progress: ProgressCallback | None = None,
) -> FingerprintTable:
    """Fetch and fingerprint every link. Failed links map to None.

    All fetches start immediately; ``config.hash_mode`` decides whether the
    results are joined and hashed one at a time or all at once. The returned
    table is in link order whatever the mode.
    """
    config = config or ClusterConfig()
    on_progress = on_progress or log_progress
    unique_links = list(dict.fromkeys(links))
    if not unique_links:
        return {}
    logger.info(
        "Fingerprinting %d unique links (%s mode)", len(unique_links), config.hash_mode.value
    )

    with fetch_all(unique_links, config) as futures:
        if config.hash_mode == HashMode.PARALLEL:
            return _hash_parallel(futures, config, on_progress)
        return _hash_sequential(futures, config, on_progress)


@dataclass(slots=True)
class PipelineResult:
    table: FingerprintTable = field(default_factory=dict)
    clusters: list[Cluster] = field(default_factory=list)
    rebuilt: bool = False

    @property
    def total_links(self) -> int:
        return len(self.table)

    @property
    def hashed(self) -> int:
        return sum(1 for fp in self.table.values() if fp is not None)

    @property
    def absent(self) -> int:
        return self.total_links - self.hashed

    @property
    def clustered_links(self) -> int:
        return sum(1 + len(c.members) for c in self.clusters)


def run_pipeline(
    links: Sequence[str],
    config: ClusterConfig | None = None,
    rebuild: bool = True,
    on_progress: ProgressCallback | None = None,
) -> PipelineResult:
    """Run one batch. *rebuild* decides whether the fingerprint cache is rebuilt.

    The table used for clustering is always the one read back from the cache,
    so declining a rebuild with no cache on disk raises CacheNotFoundError.
    """
    config = config or ClusterConfig()

    if rebuild:
        table = build_fingerprint_table(links, config, on_progress)
        meta = CacheMeta(
            hash_size=config.hash_size,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        save_cache(config.cache_path, table, meta)
        logger.info("Saved fingerprint cache to %s", config.cache_path)
    else:
        logger.info("Using existing fingerprint cache %s", config.cache_path)

    meta, table = load_cache(config.cache_path)
    if not rebuild and meta.hash_size != config.hash_size:
        logger.warning(
            "Cache was built with hash size %d (configured %d)", meta.hash_size, config.hash_size
        )

    clusters = find_clusters(table, config)
    save_clusters(config.result_path, clusters)
    logger.info("Saved %d clusters to %s", len(clusters), config.result_path)

    return PipelineResult(table=table, clusters=clusters, rebuilt=rebuild)
