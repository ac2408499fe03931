"""Thin aiohttp wrapper used for size probes, image bytes and pages."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import aiohttp

from .limiter import HostLimiter


DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) "
        "AppleWebKit/605.1.15 (KHTML, like Gecko) Mobile/15E148"
    )
}


@dataclass
class ProbeResult:
    """Outcome of a HEAD request."""
    content_length: Optional[int] = None
    error: Optional[str] = None


@dataclass
class FetchResult:
    """Outcome of a GET request for raw bytes."""
    status: int = 0
    data: bytes = b""
    error: Optional[str] = None


class HttpFetcher:
    """HTTP access for the widget. Probe and byte fetches never raise."""
    
    def __init__(
        self,
        timeout: float = 10,
        per_host_limit: int = 3,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize fetcher.
        
        Args:
            timeout: Total timeout of one request in seconds
            per_host_limit: Max concurrent byte downloads per host
            logger: Logger instance
        """
        self.timeout = timeout
        self.logger = logger or logging.getLogger("widget")
        self.host_limiter = HostLimiter(per_host_limit)
        self._session: Optional[aiohttp.ClientSession] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _get_session(self) -> aiohttp.ClientSession:
        if self._closed:
            # Timed-out passes may still call in after close()
            raise aiohttp.ClientConnectionError("Fetcher is closed")
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers=DEFAULT_HEADERS
            )
        return self._session
    
    async def head(self, url: str) -> ProbeResult:
        """
        Ask the server for the size of ``url`` without downloading it.
        
        Args:
            url: Resource URL
            
        Returns:
            ProbeResult with content_length, or error set
        """
        try:
            async with self._get_session().head(url, allow_redirects=True) as response:
                if response.status >= 400:
                    return ProbeResult(error=f"HTTP {response.status}")
                return ProbeResult(content_length=response.content_length)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            self.logger.debug(f"HEAD failed for {url}: {e!r}")
            return ProbeResult(error=f"{type(e).__name__}: {e}")
    
    async def get_bytes(self, url: str) -> FetchResult:
        """
        Download ``url`` into memory.
        
        Args:
            url: Resource URL
            
        Returns:
            FetchResult with status and data, or error set
        """
        async with self.host_limiter.limit(url):
            try:
                async with self._get_session().get(url) as response:
                    data = await response.read()
                    return FetchResult(status=response.status, data=data)
            except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
                self.logger.debug(f"GET failed for {url}: {e!r}")
                return FetchResult(error=f"{type(e).__name__}: {e}")
    
    async def get_text(self, url: str, params: Optional[dict] = None) -> str:
        """
        Fetch a page as text.
        
        Args:
            url: Page URL
            params: Query parameters
            
        Returns:
            Decoded response body
            
        Raises:
            aiohttp.ClientError: On transport errors or non-2xx status
        """
        async with self._get_session().get(url, params=params) as response:
            response.raise_for_status()
            return await response.text(errors="replace")
    
    async def close(self) -> None:
        """Close the underlying session. Later requests fail without opening a new one."""
        self._closed = True
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
    
    async def __aenter__(self) -> "HttpFetcher":
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
