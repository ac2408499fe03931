"""Async image prefetcher with per-post resume state."""
import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

import aiofiles

from ..diagnostics import Diagnostics, NullDiagnostics
from ..domain import ImageDownloadError, Item
from ..fs import filename_from_url
from .fetcher import HttpFetcher
from .selector import max_images_for, select_by_size


class ImageDownloader:
    """
    Downloads the images shown for each post.

    Progress lives on the item itself: ``image_paths`` lists the files
    already on disk and ``images_downloaded`` turns True once nothing is
    left to fetch. Running it again after a crash or timeout only fetches
    what is still missing.
    """

    def __init__(
        self,
        fetcher: HttpFetcher,
        max_image_bytes: int = 512 * 1024,
        abstract_threshold: int = 40,
        diagnostics: Optional[Diagnostics] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize downloader.

        Args:
            fetcher: HTTP access for probes and downloads
            max_image_bytes: Largest image accepted
            abstract_threshold: Abstracts shorter than this allow two images
            diagnostics: Error report sink
            logger: Logger instance
        """
        self.fetcher = fetcher
        self.max_image_bytes = max_image_bytes
        self.abstract_threshold = abstract_threshold
        self.diagnostics = diagnostics or NullDiagnostics()
        self.logger = logger or logging.getLogger("widget")

    @staticmethod
    def local_path(target_dir: str | Path, url: str) -> Path:
        return Path(target_dir) / filename_from_url(url)

    async def download_one(self, url: str, output_path: Path) -> None:
        """
        Download a single image.

        The bytes go to a ``<name>.<random>.part`` file first and are moved
        into place only when complete, so a file at ``output_path`` is
        always whole.

        Args:
            url: Image URL
            output_path: Final file path

        Raises:
            ImageDownloadError: On transport error, bad status or write failure
        """
        result = await self.fetcher.get_bytes(url)
        if result.error:
            raise ImageDownloadError(url, f"Image from {url} failed: {result.error}")
        if result.status != 200:
            raise ImageDownloadError(
                url,
                f"Image from {url} download failed with status code {result.status}",
                status=result.status
            )

        part_path = None
        try:
            # Unique per download: posts sharing an image write concurrently
            fd, part_name = tempfile.mkstemp(
                dir=output_path.parent, prefix=f"{output_path.name}.", suffix=".part"
            )
            os.close(fd)
            part_path = Path(part_name)
            async with aiofiles.open(part_path, "wb") as f:
                await f.write(result.data)
            os.replace(part_path, output_path)
        except OSError as e:
            if part_path is not None:
                part_path.unlink(missing_ok=True)
            raise ImageDownloadError(
                url, f"Failed to write image data from {url} to {output_path}: {e}"
            ) from e

        self.logger.debug(f"Downloaded: {url} -> {output_path.name}")

    async def _download_and_track(self, item: Item, url: str, output_path: Path) -> None:
        await self.download_one(url, output_path)
        item.image_paths.append(str(output_path))

    async def download_images(self, target_dir: str | Path, item: Item) -> bool:
        """
        Make sure the images selected for ``item`` are on disk.

        Args:
            target_dir: Directory of the post's source
            item: Post to work on, updated in place

        Returns:
            True when every selected image is present, False otherwise
        """
        if item.images_downloaded:
            return True
        if not item.image_urls:
            item.images_downloaded = True
            return True

        max_count = max_images_for(item.abstract, self.abstract_threshold)
        selected = await select_by_size(
            self.fetcher, item.image_urls, self.max_image_bytes, max_count
        )
        if not selected:
            # Nothing fits; retrying would not change that
            item.images_downloaded = True
            return True

        if item.image_paths is None:
            item.image_paths = []
        item.images_downloaded = False

        pending: list[tuple[str, Path]] = []
        for url in selected:
            path = self.local_path(target_dir, url)
            if str(path) in item.image_paths or any(p == path for _, p in pending):
                continue
            if path.exists():
                # Downloaded by an earlier run that never got to save it
                item.image_paths.append(str(path))
                continue
            pending.append((url, path))

        results = await asyncio.gather(
            *(self._download_and_track(item, url, path) for url, path in pending),
            return_exceptions=True
        )
        errors = [r for r in results if isinstance(r, BaseException)]

        if not errors:
            item.images_downloaded = True
            return True

        self.logger.warning(
            f"{len(errors)} of {len(pending)} images failed for post '{item.title}'"
        )
        self.diagnostics.log_error(
            {"dst": str(target_dir), "item": item, "errors": errors},
            "download_images"
        )
        return False

    async def download_all(self, target_dir: str | Path, items: list[Item]) -> bool:
        """
        Run ``download_images`` for every post at once.

        Args:
            target_dir: Directory of the source
            items: Posts to work on

        Returns:
            True if every post has all its images
        """
        results = await asyncio.gather(
            *(self.download_images(target_dir, item) for item in items),
            return_exceptions=True
        )
        for item, result in zip(items, results):
            if isinstance(result, BaseException):
                self.logger.error(f"Image pass failed for post '{item.title}': {result!r}")
        return all(result is True for result in results)
