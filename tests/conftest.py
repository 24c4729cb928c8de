"""Programmatic test images and a fake HTTP layer."""

from __future__ import annotations

import io
import threading
from collections import Counter
from collections.abc import Callable
from typing import Any, Union
from unittest.mock import MagicMock

import numpy as np
import pytest
import requests
from PIL import Image

# one entry per attempt; the last entry repeats for any further attempts
Plan = list[Union[bytes, Exception]]


def make_image_bytes(seed: int, size: int = 96, fmt: str = "PNG") -> bytes:
    """Encode a random-noise RGB image; equal seeds give identical pixels."""
    rng = np.random.RandomState(seed)
    arr = rng.randint(0, 256, (size, size, 3), dtype=np.uint8)
    buf = io.BytesIO()
    Image.fromarray(arr).save(buf, format=fmt)
    return buf.getvalue()


class FakeHTTP:
    """Stand-in for ``requests.get`` driven by per-URL attempt plans."""

    def __init__(self, routes: dict[str, Plan]) -> None:
        self.routes = routes
        self.calls: Counter[str] = Counter()
        self.kwargs: list[dict[str, Any]] = []
        self._lock = threading.Lock()

    def get(self, url: str, **kwargs: Any) -> MagicMock:
        with self._lock:
            attempt = self.calls[url]
            self.calls[url] += 1
            self.kwargs.append(kwargs)

        plan = self.routes.get(url)
        if not plan:
            raise requests.ConnectionError(f"Failed to resolve {url}")
        step = plan[min(attempt, len(plan) - 1)]
        if isinstance(step, Exception):
            raise step

        response = MagicMock()
        response.content = step
        response.raise_for_status.return_value = None
        return response


@pytest.fixture
def image_bytes() -> Callable[..., bytes]:
    return make_image_bytes


@pytest.fixture
def fake_http(monkeypatch: pytest.MonkeyPatch) -> Callable[[dict[str, Plan]], FakeHTTP]:
    """Install a FakeHTTP for the fetcher and return it."""

    def install(routes: dict[str, Plan]) -> FakeHTTP:
        fake = FakeHTTP(routes)
        monkeypatch.setattr("imgcluster.net.fetcher.requests.get", fake.get)
        return fake

    return install


@pytest.fixture
def links_file(tmp_path):
    """Write a one-per-line links file and return its path."""

    def write(links: list[str]) -> str:
        path = tmp_path / "links.txt"
        path.write_text("\n".join(links) + "\n", encoding="utf-8")
        return str(path)

    return write
