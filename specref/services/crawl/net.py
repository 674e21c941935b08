"""HTTP helpers and retry policies for the ISO spiders.

Failures are classified into :class:`TransientFetchError` (network, timeout,
408/429/5xx), which the tenacity policies below retry, and plain
:class:`FetchError` (other statuses, redirect loops, undecodable bodies,
malformed URLs), which surfaces immediately.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional, Sequence

import httpx
from tenacity import (
    AsyncRetrying,
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_chain,
    wait_fixed,
    wait_none,
)

from .errors import FetchError, TransientFetchError

logger = logging.getLogger(__name__)

TRANSIENT_STATUSES = frozenset({408, 429})


def raise_for_status(response: httpx.Response) -> None:
    status = response.status_code
    if 200 <= status < 300:
        return
    url = str(response.request.url)
    if status in TRANSIENT_STATUSES or status >= 500:
        raise TransientFetchError(url, f"HTTP {status}")
    raise FetchError(url, f"HTTP {status}")


def get_text(client: httpx.Client, url: str) -> str:
    try:
        response = client.get(url)
    except httpx.TransportError as exc:
        raise TransientFetchError(url, f"{type(exc).__name__}: {exc}") from exc
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise FetchError(url, f"{type(exc).__name__}: {exc}") from exc
    raise_for_status(response)
    return response.text


async def aget_text(client: httpx.AsyncClient, url: str) -> str:
    try:
        response = await client.get(url)
    except httpx.TransportError as exc:
        raise TransientFetchError(url, f"{type(exc).__name__}: {exc}") from exc
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise FetchError(url, f"{type(exc).__name__}: {exc}") from exc
    raise_for_status(response)
    return response.text


def listing_retrying(
    retries: int, *, sleep: Callable[[float], None] = time.sleep
) -> Retrying:
    """Immediate retries, no backoff: a listing failure is cheap to redo whole."""
    return Retrying(
        stop=stop_after_attempt(retries + 1),
        wait=wait_none(),
        retry=retry_if_exception_type(TransientFetchError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=sleep,
        reraise=True,
    )


def detail_retrying(
    delays: Sequence[float], *, sleep: Optional[Callable] = None
) -> AsyncRetrying:
    """One attempt, then one retry per entry of ``delays`` after that many seconds."""
    wait = wait_chain(*[wait_fixed(d) for d in delays]) if delays else wait_none()
    return AsyncRetrying(
        stop=stop_after_attempt(len(delays) + 1),
        wait=wait,
        retry=retry_if_exception_type(TransientFetchError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=sleep or asyncio.sleep,
        reraise=True,
    )
