"""
Feed Fetcher

Fetches raw upstream bytes under a hard deadline.

PRINCIPLES:
===========
1. Failed fetches are first-class results, never exceptions
2. Every request runs under a cancellation-based deadline
3. A cancelled fetch releases its connection and touches no shared state
"""

from __future__ import annotations
from typing import Mapping, Optional
from datetime import datetime, timezone
import asyncio
import logging

import httpx

from .contracts import FetchResult, FetchStatus


logger = logging.getLogger(__name__)


class FeedFetcher:
    """
    Fetches upstream payloads over HTTP.

    GUARANTEES:
    ===========
    1. `fetch` always returns a FetchResult
    2. Non-200 responses are HTTP_ERROR with the status recorded
    3. The deadline covers the whole request, not a single socket read
    """

    def __init__(
        self,
        user_agent: str = "ConflictIngestion/1.0",
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self._user_agent = user_agent
        self._transport = transport

    async def fetch(
        self,
        url: str,
        timeout: float,
        params: Optional[Mapping[str, str]] = None,
        accept: str = "*/*"
    ) -> FetchResult:
        attempted_at = datetime.now(timezone.utc)

        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                response = await asyncio.wait_for(
                    client.get(
                        url,
                        params=params,
                        headers={'User-Agent': self._user_agent, 'Accept': accept},
                        follow_redirects=True
                    ),
                    timeout=timeout
                )

            completed_at = datetime.now(timezone.utc)

            if response.status_code != 200:
                logger.warning("Fetch %s returned HTTP %s", url, response.status_code)
                return FetchResult(
                    url=url,
                    attempted_at=attempted_at,
                    completed_at=completed_at,
                    status=FetchStatus.HTTP_ERROR,
                    http_status=response.status_code,
                    error_message=f"HTTP {response.status_code}"
                )

            return FetchResult(
                url=url,
                attempted_at=attempted_at,
                completed_at=completed_at,
                status=FetchStatus.SUCCESS,
                body=response.content,
                http_status=response.status_code
            )

        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning("Fetch %s timed out after %.1fs", url, timeout)
            return self._failure(url, attempted_at, FetchStatus.TIMEOUT, "Request timed out")

        except httpx.HTTPError as e:
            logger.warning("Fetch %s failed: %s", url, e)
            return self._failure(url, attempted_at, FetchStatus.NETWORK_ERROR, str(e))

    def _failure(
        self,
        url: str,
        attempted_at: datetime,
        status: FetchStatus,
        message: str
    ) -> FetchResult:
        return FetchResult(
            url=url,
            attempted_at=attempted_at,
            completed_at=datetime.now(timezone.utc),
            status=status,
            error_message=message
        )
