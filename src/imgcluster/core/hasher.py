"""Perceptual hashing wrappers."""

from __future__ import annotations

import io
import logging

import imagehash
from PIL import Image

from imgcluster.models.fingerprint import FetchResult

logger = logging.getLogger(__name__)


def compute_fingerprint(data: bytes, hash_size: int = 8) -> str:
    """Return the pHash of encoded image *data* as a hex string.

    Raises whatever Pillow raises for truncated or unsupported input.
    """
    with Image.open(io.BytesIO(data)) as img:
        work_img = img.convert("RGB") if img.mode not in {"RGB", "L"} else img
        return str(imagehash.phash(work_img, hash_size=hash_size))


def hamming_distance(hash_a: str, hash_b: str) -> int:
    h1 = imagehash.hex_to_hash(hash_a)
    h2 = imagehash.hex_to_hash(hash_b)
    return int(h1 - h2)


def fingerprint_similarity(hash_a: str, hash_b: str) -> float:
    """Normalized similarity in [0, 1]: one minus the fraction of differing bits."""
    h1 = imagehash.hex_to_hash(hash_a)
    h2 = imagehash.hex_to_hash(hash_b)
    if h1.hash.size != h2.hash.size:
        raise ValueError(
            f"Cannot compare fingerprints of different sizes ({h1.hash.size} vs {h2.hash.size} bits)"
        )
    bits = h1.hash.size
    if bits == 0:
        return 1.0
    return 1.0 - (int(h1 - h2) / bits)


def hash_result(result: FetchResult, hash_size: int = 8) -> str | None:
    """Fingerprint a fetch outcome. Never raises — failures yield None."""
    if not result.ok or result.content is None:
        logger.warning(
            "Could not process %s: fetch failed after %d attempt(s): %s",
            result.link,
            result.attempts,
            result.error,
        )
        return None
    try:
        return compute_fingerprint(result.content, hash_size)
    except Exception as exc:
        logger.warning("Could not process %s: %s", result.link, exc)
        return None
