"""Clustering result artifact read/write."""

from __future__ import annotations

from pathlib import Path

import orjson

from imgcluster.models.fingerprint import Cluster


def save_clusters(path: str | Path, clusters: list[Cluster]) -> None:
    data = orjson.dumps([c.to_dict() for c in clusters], option=orjson.OPT_INDENT_2)
    Path(path).write_bytes(data)


def load_clusters(path: str | Path) -> list[Cluster]:
    """Read clusters in the order they were saved."""
    data = orjson.loads(Path(path).read_bytes())
    return [Cluster.from_dict(item) for item in data]
