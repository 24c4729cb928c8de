"""JSONL fingerprint cache read/write with strict validation."""

from __future__ import annotations

import math
import os
import string
import tempfile
from pathlib import Path
from typing import Any

import orjson

from imgcluster.models.fingerprint import (
    CACHE_META_KEY,
    CACHE_SCHEMA_VERSION,
    CacheMeta,
    FingerprintTable,
)


class CacheError(Exception):
    """The fingerprint cache cannot be used; fatal for the run."""


class CacheNotFoundError(CacheError):
    pass


class CacheFormatError(CacheError):
    pass


def save_cache(path: str | Path, table: FingerprintTable, meta: CacheMeta | None = None) -> None:
    """Write the full table, absent entries included, as a header line plus one line per link.

    Uses atomic write via temp file + rename so a crash never leaves a half-written cache.
    """
    path = Path(path)
    meta = meta or CacheMeta()
    meta.total_links = len(table)

    fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(orjson.dumps(meta.to_dict(), option=orjson.OPT_APPEND_NEWLINE))
            for link, fingerprint in table.items():
                f.write(
                    orjson.dumps(
                        {"link": link, "fingerprint": fingerprint},
                        option=orjson.OPT_APPEND_NEWLINE,
                    )
                )
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        os.unlink(tmp)
        raise


def _fingerprint_length(hash_size: int) -> int:
    """Hex characters imagehash writes for a hash_size x hash_size bit hash."""
    return math.ceil(hash_size * hash_size / 4)


def _parse_entry(data: Any, lineno: int, hash_size: int) -> tuple[str, str | None]:
    if not isinstance(data, dict) or set(data) != {"link", "fingerprint"}:
        raise CacheFormatError(f"line {lineno}: expected an object with 'link' and 'fingerprint'")
    link = data["link"]
    fingerprint = data["fingerprint"]
    if not isinstance(link, str) or not link:
        raise CacheFormatError(f"line {lineno}: 'link' must be a non-empty string")
    if fingerprint is not None and not isinstance(fingerprint, str):
        raise CacheFormatError(f"line {lineno}: 'fingerprint' must be a string or null")
    if fingerprint is not None:
        if not fingerprint or not all(ch in string.hexdigits for ch in fingerprint):
            raise CacheFormatError(f"line {lineno}: fingerprint {fingerprint!r} is not hexadecimal")
        if len(fingerprint) != _fingerprint_length(hash_size):
            raise CacheFormatError(
                f"line {lineno}: fingerprint has {len(fingerprint)} hex digits, "
                f"expected {_fingerprint_length(hash_size)} for hash size {hash_size}"
            )
    return link, fingerprint


def load_cache(path: str | Path) -> tuple[CacheMeta, FingerprintTable]:
    """Read a cache written by :func:`save_cache`. Any deviation raises CacheFormatError."""
    path = Path(path)
    if not path.exists():
        raise CacheNotFoundError(f"Fingerprint cache {path} does not exist")

    meta: CacheMeta | None = None
    table: FingerprintTable = {}

    with open(path, "rb") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                data = orjson.loads(line)
            except orjson.JSONDecodeError as exc:
                raise CacheFormatError(f"{path}: line {lineno} is not valid JSON: {exc}") from exc

            if meta is None:
                if not isinstance(data, dict) or not data.get(CACHE_META_KEY):
                    raise CacheFormatError(f"{path}: missing cache header on line {lineno}")
                meta = CacheMeta.from_dict(data)
                if meta.schema_version != CACHE_SCHEMA_VERSION:
                    raise CacheFormatError(
                        f"{path}: unsupported schema version {meta.schema_version!r}"
                    )
                if not isinstance(meta.hash_size, int) or meta.hash_size < 2:
                    raise CacheFormatError(f"{path}: invalid hash size {meta.hash_size!r}")
                continue

            try:
                link, fingerprint = _parse_entry(data, lineno, meta.hash_size)
            except CacheFormatError as exc:
                raise CacheFormatError(f"{path}: {exc}") from exc
            if link in table:
                raise CacheFormatError(f"{path}: line {lineno}: duplicate link {link}")
            table[link] = fingerprint

    if meta is None:
        raise CacheFormatError(f"{path}: empty cache file")
    if meta.total_links != len(table):
        raise CacheFormatError(
            f"{path}: header lists {meta.total_links} links but {len(table)} entries were read"
        )
    return meta, table
