"""Concurrent, retried HTTP downloads of image links."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager

import requests
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    wait_none,
)

from imgcluster.models.config import ClusterConfig
from imgcluster.models.fingerprint import FetchResult

logger = logging.getLogger(__name__)

_USER_AGENT = "imgcluster"


def _attempt_once(link: str, config: ClusterConfig) -> FetchResult:
    """Issue a single GET and read the whole body. Never raises."""
    try:
        # module-level get: no Session, so no cookies or pooled state between requests
        response = requests.get(
            link,
            timeout=(config.connect_timeout, config.read_timeout),
            headers={"User-Agent": _USER_AGENT},
            allow_redirects=True,
        )
        response.raise_for_status()
        return FetchResult.success(link, response.content)
    except requests.RequestException as exc:
        return FetchResult.failure(link, str(exc) or type(exc).__name__)
    except Exception as exc:  # noqa: BLE001 - e.g. urllib3 LocationParseError on malformed hosts
        return FetchResult.failure(link, f"{type(exc).__name__}: {exc}")


def _is_failure(result: FetchResult) -> bool:
    return not result.ok


def _log_retry(retry_state: RetryCallState) -> None:
    result: FetchResult = retry_state.outcome.result()  # type: ignore[union-attr]
    remaining = retry_state.retry_object.stop.max_attempt_number - retry_state.attempt_number  # type: ignore[attr-defined]
    logger.warning(
        "Caught exception: %s | %s | retrying: %d left", result.error, result.link, remaining
    )


def _last_failure(retry_state: RetryCallState) -> FetchResult:
    return retry_state.outcome.result()  # type: ignore[union-attr]


def fetch_link(link: str, config: ClusterConfig | None = None) -> FetchResult:
    """Fetch *link* with up to ``config.max_attempts`` immediate attempts.

    Each attempt is bounded by the connect and read timeouts. The returned
    outcome carries the number of attempts made; after the final failed
    attempt the failure is returned instead of retried.
    """
    config = config or ClusterConfig()
    retryer = Retrying(
        stop=stop_after_attempt(config.max_attempts),
        wait=wait_none(),
        retry=retry_if_result(_is_failure),
        before_sleep=_log_retry,
        retry_error_callback=_last_failure,
    )
    attempts = 0

    def attempt() -> FetchResult:
        nonlocal attempts
        attempts += 1
        return _attempt_once(link, config)

    result: FetchResult = retryer(attempt)
    result.attempts = attempts
    return result


@contextmanager
def fetch_all(
    links: Sequence[str], config: ClusterConfig | None = None
) -> Iterator[dict[str, Future[FetchResult]]]:
    """Start fetching every link at once and yield link -> future, in link order.

    The pool has one worker per link unless ``config.max_fetch_workers`` caps it.
    Leaving the block waits for every outstanding fetch; nothing is cancelled.
    """
    config = config or ClusterConfig()
    workers = config.max_fetch_workers or max(1, len(links))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="fetch") as executor:
        futures = {link: executor.submit(fetch_link, link, config) for link in links}
        yield futures
