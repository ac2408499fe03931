"""Client that turns a forum name into its latest posts."""
import logging
from typing import Optional

import aiohttp

from ..domain import Item, RemoteFetchError
from ..downloader import HttpFetcher
from .extractor import ThreadListExtractor


class TiebaClient:
    """Fetches the front page of a forum and parses its posts."""
    
    def __init__(
        self,
        fetcher: HttpFetcher,
        base_url: str = "https://tieba.baidu.com",
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize client.
        
        Args:
            fetcher: HTTP access
            base_url: Site root
            logger: Logger instance
        """
        self.fetcher = fetcher
        self.base_url = base_url.rstrip("/")
        self.logger = logger or logging.getLogger("widget")
        self.extractor = ThreadListExtractor(self.base_url)
    
    async def fetch(self, source_name: str, max_items: int) -> list[Item]:
        """
        Fetch up to ``max_items`` posts of ``source_name``.
        
        Args:
            source_name: Forum name
            max_items: Maximum number of posts
            
        Returns:
            Posts in page order
            
        Raises:
            RemoteFetchError: If the page cannot be fetched or is not a post list
        """
        url = f"{self.base_url}/f"
        try:
            html = await self.fetcher.get_text(url, params={"kw": source_name, "ie": "utf-8"})
        except aiohttp.ClientError as e:
            raise RemoteFetchError(f"Failed to fetch forum '{source_name}': {e}") from e
        
        if not self.extractor.has_thread_list(html):
            raise RemoteFetchError(f"No post list found on the page of '{source_name}'")
        
        items = self.extractor.extract_items(html, max_items=max_items)
        self.logger.info(f"Fetched {len(items)} posts from {source_name}")
        return items
