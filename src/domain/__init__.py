"""Domain models and errors."""
from .errors import (
    WidgetError,
    OperationTimeout,
    RemoteFetchError,
    ImageDownloadError,
    FilesystemError,
    DeserializationError,
)
from .models import Item, CacheRecord, Entry, TrackedSource

__all__ = [
    "WidgetError",
    "OperationTimeout",
    "RemoteFetchError",
    "ImageDownloadError",
    "FilesystemError",
    "DeserializationError",
    "Item",
    "CacheRecord",
    "Entry",
    "TrackedSource",
]
