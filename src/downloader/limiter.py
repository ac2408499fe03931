"""Per-host concurrency limiter for image downloads."""
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator
from urllib.parse import urlparse


class HostLimiter:
    """Caps the number of concurrent requests sent to one image host."""
    
    def __init__(self, per_host_limit: int = 3):
        """
        Initialize host limiter.
        
        Args:
            per_host_limit: Maximum concurrent requests per host
        """
        self.per_host_limit = per_host_limit
        self._semaphores: dict[str, asyncio.Semaphore] = {}
    
    def _semaphore_for(self, url: str) -> asyncio.Semaphore:
        host = (urlparse(url).hostname or "default").lower()
        if host not in self._semaphores:
            self._semaphores[host] = asyncio.Semaphore(self.per_host_limit)
        return self._semaphores[host]
    
    @asynccontextmanager
    async def limit(self, url: str) -> AsyncIterator[None]:
        """
        Hold a slot for the host of ``url`` while the block runs.
        
        Args:
            url: URL being accessed
        """
        async with self._semaphore_for(url):
            yield
