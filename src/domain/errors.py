"""Error taxonomy for fetching, caching and image prefetch."""
from pathlib import Path
from typing import Optional


class WidgetError(Exception):
    """Base class for all errors raised by this package."""


class OperationTimeout(WidgetError):
    """An operation did not finish within its time budget."""
    
    def __init__(self, operation: str, max_duration: float):
        self.operation = operation
        self.max_duration = max_duration
        super().__init__(f"{operation} timed out after {max_duration:g}s")


class RemoteFetchError(WidgetError):
    """The remote source could not deliver the post list."""


class ImageDownloadError(WidgetError):
    """A single image could not be fetched or written."""
    
    def __init__(self, url: str, message: str, status: Optional[int] = None):
        self.url = url
        self.status = status
        super().__init__(message)


class FilesystemError(WidgetError):
    """A directory could not be created or deleted."""
    
    def __init__(self, path: str | Path, message: str):
        self.path = Path(path)
        super().__init__(f"{message}: {self.path}")


class DeserializationError(WidgetError):
    """Persisted data has an unexpected shape."""
