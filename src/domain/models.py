"""Domain models for cached posts and their images."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from .errors import DeserializationError


def _optional(data: dict, key: str, kind: type) -> Any:
    value = data.get(key)
    if value is not None and not isinstance(value, kind):
        raise DeserializationError(
            f"Field '{key}' must be {kind.__name__}, got {type(value).__name__}"
        )
    return value


def _string_list(data: dict, key: str, required: bool) -> Optional[list[str]]:
    value = data.get(key)
    if value is None:
        if required:
            raise DeserializationError(f"Field '{key}' is missing")
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise DeserializationError(f"Field '{key}' must be a list of strings")
    return list(value)


@dataclass
class Item:
    """
    One post fetched from a forum.
    
    ``images_downloaded`` is the durable resume marker: once True, the
    images of this post are never attempted again. ``image_paths`` holds
    the local files materialized so far.
    """
    title: str = ""
    link: Optional[str] = None
    author: Optional[str] = None
    reply_count: Optional[int] = None
    abstract: Optional[str] = None
    image_urls: list[str] = field(default_factory=list)
    images_downloaded: Optional[bool] = None
    image_paths: Optional[list[str]] = None
    
    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "link": self.link,
            "author": self.author,
            "reply_count": self.reply_count,
            "abstract": self.abstract,
            "image_urls": list(self.image_urls),
            "images_downloaded": self.images_downloaded,
            "image_paths": list(self.image_paths) if self.image_paths is not None else None,
        }
    
    @classmethod
    def from_dict(cls, data: Any) -> "Item":
        """
        Build an item from its serialized form.
        
        Raises:
            DeserializationError: If the shape is invalid
        """
        if not isinstance(data, dict):
            raise DeserializationError(f"Item must be an object, got {type(data).__name__}")
        
        reply_count = _optional(data, "reply_count", int)
        if isinstance(reply_count, bool):
            raise DeserializationError("Field 'reply_count' must be int, got bool")
        
        return cls(
            title=_optional(data, "title", str) or "",
            link=_optional(data, "link", str),
            author=_optional(data, "author", str),
            reply_count=reply_count,
            abstract=_optional(data, "abstract", str),
            image_urls=_string_list(data, "image_urls", required=True),
            images_downloaded=_optional(data, "images_downloaded", bool),
            image_paths=_string_list(data, "image_paths", required=False),
        )


@dataclass
class CacheRecord:
    """Cached posts of one source, stamped with the time they were fetched."""
    items: list[Item]
    captured_at: datetime
    
    @property
    def all_images_downloaded(self) -> bool:
        """True iff every item has finished its image download."""
        return all(item.images_downloaded is True for item in self.items)
    
    def to_dict(self) -> dict:
        return {
            "items": [item.to_dict() for item in self.items],
            "captured_at": self.captured_at.isoformat(),
            "all_images_downloaded": self.all_images_downloaded,
        }
    
    @classmethod
    def from_dict(cls, data: Any) -> "CacheRecord":
        """
        Build a record from its serialized form.
        
        The stored ``all_images_downloaded`` flag is not trusted; it is
        always derived from the items. A ``captured_at`` carrying a UTC
        offset is converted to naive local time.
        
        Raises:
            DeserializationError: If the shape is invalid
        """
        if not isinstance(data, dict):
            raise DeserializationError(f"Record must be an object, got {type(data).__name__}")
        
        items = data.get("items")
        if not isinstance(items, list):
            raise DeserializationError("Field 'items' must be a list")
        
        captured_at = data.get("captured_at")
        if not isinstance(captured_at, str):
            raise DeserializationError("Field 'captured_at' is missing")
        try:
            captured = datetime.fromisoformat(captured_at)
        except ValueError as e:
            raise DeserializationError(f"Invalid 'captured_at': {captured_at!r}") from e
        if captured.tzinfo is not None:
            # Freshness is compared against naive local clock readings
            captured = captured.astimezone().replace(tzinfo=None)

        return cls(
            items=[Item.from_dict(item) for item in items],
            captured_at=captured,
        )


@dataclass
class Entry:
    """Result handed to callers: posts plus their capture time, or both None."""
    info: Optional[list[Item]] = None
    captured_at: Optional[datetime] = None


@dataclass
class TrackedSource:
    """A forum the user follows. ``name`` is the display label of ``value``."""
    name: str
    value: str
    
    @classmethod
    def for_forum(cls, forum_name: str) -> "TrackedSource":
        return cls(name=f"{forum_name}吧", value=forum_name)
    
    def is_valid(self) -> bool:
        return (
            bool(self.name)
            and bool(self.value)
            and self.name == self.value + "吧"
        )
