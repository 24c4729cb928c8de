"""Data models for fetch outcomes, fingerprint caches and clusters."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

# Link -> perceptual hash hex string, or None when fetch/decode failed.
# Insertion order is the order the links were loaded in.
FingerprintTable = dict[str, str | None]


@dataclass(slots=True)
class FetchResult:
    """Outcome of fetching one link: either body bytes or a failure reason."""

    link: str
    ok: bool
    content: bytes | None = field(default=None, repr=False)
    error: str | None = None
    attempts: int = 1

    @classmethod
    def success(cls, link: str, content: bytes, attempts: int = 1) -> FetchResult:
        return cls(link=link, ok=True, content=content, attempts=attempts)

    @classmethod
    def failure(cls, link: str, error: str, attempts: int = 1) -> FetchResult:
        return cls(link=link, ok=False, error=error, attempts=attempts)


@dataclass(slots=True)
class Cluster:
    """A cluster head and the links judged similar to it, in scan order."""

    head: str
    members: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Cluster:
        return cls(head=data["head"], members=list(data.get("members", [])))


CACHE_META_KEY = "__fingerprint_cache__"
CACHE_SCHEMA_VERSION = 1


@dataclass(slots=True)
class CacheMeta:
    schema_version: int = CACHE_SCHEMA_VERSION
    hash_size: int = 8
    total_links: int = 0
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d[CACHE_META_KEY] = True
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CacheMeta:
        filtered = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**filtered)


def clusters_to_mapping(clusters: list[Cluster]) -> dict[str, list[str]]:
    """Ordered head -> members mapping view of a cluster list."""
    return {c.head: list(c.members) for c in clusters}
