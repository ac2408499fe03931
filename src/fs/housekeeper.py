"""Preparation and periodic cleanup of per-source image directories."""
import logging
import time
from pathlib import Path
from typing import Callable, Optional

from ..diagnostics import Diagnostics, NullDiagnostics
from ..domain import FilesystemError
from .utils import ensure_directory, get_mtime, remove_path, slugify


class DirectoryHousekeeper:
    """
    Keeps the image root and per-source directories in shape.
    
    Images are disposable: a source directory older than ``clear_interval``
    is deleted wholesale and recreated, so stale pictures do not pile up.
    """
    
    def __init__(
        self,
        root_dir: str | Path = "img",
        clear_interval: float = 3 * 24 * 3600,
        diagnostics: Optional[Diagnostics] = None,
        logger: Optional[logging.Logger] = None,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize housekeeper.
        
        Args:
            root_dir: Shared root directory for all sources
            clear_interval: Max age of a source directory in seconds
            diagnostics: Error report sink
            logger: Logger instance
            clock: Returns current POSIX time
        """
        self.root_dir = Path(root_dir)
        self.clear_interval = clear_interval
        self.diagnostics = diagnostics or NullDiagnostics()
        self.logger = logger or logging.getLogger("widget")
        self.clock = clock
    
    def target_dir_for(self, source_name: str) -> Path:
        """Directory holding the images of one source."""
        return self.root_dir / slugify(source_name)
    
    def prepare(self, target_dir: str | Path) -> bool:
        """
        Make ``target_dir`` ready for downloads.
        
        Args:
            target_dir: Per-source image directory
            
        Returns:
            True if the directory exists afterwards, False on failure
        """
        target_dir = Path(target_dir)
        try:
            self._create(self.root_dir)
            
            try:
                last_cleared = get_mtime(target_dir)
            except OSError as e:
                raise FilesystemError(target_dir, f"failed to read folder age: {e}") from e
            if last_cleared is not None and self.clock() - last_cleared > self.clear_interval:
                self.logger.info(f"Clearing stale image directory: {target_dir}")
                try:
                    remove_path(target_dir)
                except OSError as e:
                    raise FilesystemError(target_dir, f"failed to delete: {e}") from e
            
            self._create(target_dir)
            return True
        
        except FilesystemError as e:
            self.logger.error(str(e))
            self.diagnostics.log_error({"dst": str(target_dir), "error": e}, "prepare_image_dir")
            return False
    
    @staticmethod
    def _create(path: Path) -> None:
        if path.is_dir():
            return
        try:
            ensure_directory(path)
        except OSError as e:
            raise FilesystemError(path, f"failed to create folder for saving images: {e}") from e
