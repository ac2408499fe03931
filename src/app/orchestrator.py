"""Entry orchestrator: cache policy, fetch fallback and image prefetch."""
import logging
import sqlite3
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Optional

from ..diagnostics import Diagnostics, NullDiagnostics
from ..domain import CacheRecord, Entry, Item, OperationTimeout, WidgetError
from ..downloader import ImageDownloader
from ..fs import DirectoryHousekeeper
from ..source import TiebaClient
from ..storage import CacheStore, PreferencesStore, REFRESH_CIRCLE
from .timeout import run_with_timeout


class EntryOrchestrator:
    """
    Decides per forum whether to reuse the cache, fetch new posts, or
    continue an unfinished image download.

    Freshness is judged only against the time the posts were fetched.
    Image progress can lag behind: a fresh cache with missing images gets
    another bounded download pass, and a failed fetch falls back to
    whatever was cached, however old.
    """

    def __init__(
        self,
        cache_store: CacheStore,
        prefs: PreferencesStore,
        source_client: TiebaClient,
        downloader: ImageDownloader,
        housekeeper: DirectoryHousekeeper,
        diagnostics: Optional[Diagnostics] = None,
        post_info_timeout: float = 10,
        image_timeout: float = 15,
        max_items_per_fetch: int = 10,
        default_refresh_minutes: float = 30,
        clock: Callable[[], datetime] = datetime.now,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize orchestrator.

        Args:
            cache_store: Durable record per forum
            prefs: User preferences (refresh interval override)
            source_client: Remote post source
            downloader: Image prefetcher
            housekeeper: Image directory preparation and cleanup
            diagnostics: Error report sink
            post_info_timeout: Budget for fetching posts, in seconds
            image_timeout: Budget for one image pass, in seconds
            max_items_per_fetch: Maximum posts per fetch
            default_refresh_minutes: Cache lifetime when no preference is set
            clock: Returns the current time
            logger: Logger instance
        """
        self.cache_store = cache_store
        self.prefs = prefs
        self.source_client = source_client
        self.downloader = downloader
        self.housekeeper = housekeeper
        self.diagnostics = diagnostics or NullDiagnostics()
        self.post_info_timeout = post_info_timeout
        self.image_timeout = image_timeout
        self.max_items_per_fetch = max_items_per_fetch
        self.default_refresh_minutes = default_refresh_minutes
        self.clock = clock
        self.logger = logger or logging.getLogger("widget")

    def refresh_interval(self) -> timedelta:
        """Cache lifetime, from the "refresh-circle" preference if set."""
        try:
            minutes = self.prefs.get(REFRESH_CIRCLE)
        except sqlite3.Error as e:
            self.logger.warning(f"Reading preference {REFRESH_CIRCLE} failed: {e}")
            minutes = None
        if isinstance(minutes, bool) or not isinstance(minutes, (int, float)) or minutes <= 0:
            minutes = self.default_refresh_minutes
        return timedelta(minutes=minutes)

    def is_cache_valid(self, record: Optional[CacheRecord], now: datetime) -> bool:
        """
        Whether ``record`` can be used without fetching again.

        Args:
            record: Cached record, possibly None
            now: Current time

        Returns:
            True if the record has posts and is younger than the refresh interval
        """
        return (
            record is not None
            and bool(record.items)
            and record.captured_at is not None
            and now - record.captured_at < self.refresh_interval()
        )

    async def _fetch_posts(self, source_name: str) -> Optional[list[Item]]:
        """Fetch posts under the time budget. Returns None on any failure."""
        try:
            return await run_with_timeout(
                self.source_client.fetch,
                self.post_info_timeout,
                source_name,
                self.max_items_per_fetch
            )
        except WidgetError as e:
            self.logger.warning(f"Fetching posts of {source_name} failed: {e}")
            self.diagnostics.log_error({"error": e}, f"fetch_posts-{source_name}")
            return None
        except Exception as e:
            self.logger.exception(f"Unexpected error fetching posts of {source_name}: {e}")
            self.diagnostics.log_error({"error": e}, f"fetch_posts-{source_name}")
            return None

    async def _download_images(
        self,
        target_dir: Path,
        items: list[Item],
        partial_downloaded: bool
    ) -> bool:
        """
        Run one image pass for all posts under the time budget.

        Args:
            target_dir: Image directory of the forum
            items: Posts, updated in place
            partial_downloaded: An earlier pass left files behind; skip the
                directory cleanup so they are not deleted

        Returns:
            True if every post has all its images
        """
        try:
            if not partial_downloaded and not self.housekeeper.prepare(target_dir):
                return False
            return await run_with_timeout(
                self.downloader.download_all,
                self.image_timeout,
                target_dir,
                items
            )
        except OperationTimeout as e:
            self.logger.warning(f"Image download for {target_dir.name} incomplete: {e}")
            self.diagnostics.log_error(
                {"dst": str(target_dir), "error": e, "items": items},
                "download_all_images"
            )
            return False
        except Exception as e:
            self.logger.exception(f"Image download for {target_dir.name} failed: {e}")
            self.diagnostics.log_error(
                {"dst": str(target_dir), "error": e, "items": items},
                "download_all_images"
            )
            return False

    async def _load(self, source_name: str) -> Optional[CacheRecord]:
        try:
            return await self.cache_store.get(source_name)
        except Exception as e:
            self.logger.exception(f"Reading cache of {source_name} failed: {e}")
            return None

    async def _save(self, source_name: str, record: CacheRecord) -> None:
        try:
            await self.cache_store.set(source_name, record)
        except Exception as e:
            self.logger.exception(f"Writing cache of {source_name} failed: {e}")
            self.diagnostics.log_error({"error": e}, f"save_cache-{source_name}")

    async def get_entry(self, source_name: str, force_reload: bool = False) -> Entry:
        """
        Return the posts of ``source_name`` for display.

        Args:
            source_name: Forum name
            force_reload: Fetch even if the cache is fresh

        Returns:
            Entry with posts and their capture time; both None when nothing
            was ever cached and fetching failed
        """
        if not source_name:
            return Entry()

        cached = await self._load(source_name)
        target_dir = self.housekeeper.target_dir_for(source_name)
        now = self.clock()

        if not force_reload and self.is_cache_valid(cached, now):
            self.logger.info(f"Using cached posts of {source_name} from {cached.captured_at}")
            if not cached.all_images_downloaded:
                await self._download_images(target_dir, cached.items, partial_downloaded=True)
                await self._save(source_name, cached)
            return Entry(info=cached.items, captured_at=cached.captured_at)

        items = await self._fetch_posts(source_name)
        if items is not None:
            record = CacheRecord(items=items, captured_at=self.clock())
            await self._download_images(target_dir, items, partial_downloaded=False)
            await self._save(source_name, record)
            self.logger.info(
                f"Cached {len(items)} posts of {source_name} "
                f"(images complete: {record.all_images_downloaded})"
            )
            return Entry(info=record.items, captured_at=record.captured_at)

        if cached is not None and cached.captured_at is not None:
            self.logger.warning(
                f"Serving stale posts of {source_name} from {cached.captured_at}"
            )
            return Entry(info=cached.items, captured_at=cached.captured_at)

        return Entry()

    async def refresh_all(self, names: list[str], force_reload: bool = False) -> dict[str, Entry]:
        """
        Run ``get_entry`` for each forum in turn.

        Args:
            names: Forum names
            force_reload: Fetch even if caches are fresh

        Returns:
            Mapping of forum name to its entry
        """
        results = {}
        for name in names:
            results[name] = await self.get_entry(name, force_reload)
        return results
