"""Loading the ordered list of image links."""

from __future__ import annotations

from pathlib import Path

import orjson


class LinksError(Exception):
    """The link list could not be read."""


def read_links(path: str | Path) -> list[str]:
    """Read links from a JSON array or a one-link-per-line text file.

    Order is preserved; repeated links keep their first position only.
    Blank lines and lines starting with ``#`` are ignored in text files.
    """
    path = Path(path)
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise LinksError(f"Cannot read link list {path}: {exc}") from exc

    if raw.lstrip().startswith(b"["):
        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as exc:
            raise LinksError(f"{path} is not a valid JSON array: {exc}") from exc
        if not all(isinstance(item, str) for item in data):
            raise LinksError(f"{path}: every entry of the JSON array must be a string")
        candidates = [item.strip() for item in data]
    else:
        lines = raw.decode("utf-8", errors="replace").splitlines()
        candidates = [ln.strip() for ln in lines if not ln.strip().startswith("#")]

    return list(dict.fromkeys(c for c in candidates if c))
