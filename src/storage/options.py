"""List of tracked forums kept in a JSON file."""
import json
import logging
from pathlib import Path
from typing import Optional

from ..domain import TrackedSource
from ..fs import atomic_write_json


class OptionsStore:
    """Tracked forums, in the order the user added them."""
    
    def __init__(self, path: str | Path, logger: Optional[logging.Logger] = None):
        """
        Initialize options store.
        
        Args:
            path: JSON file holding ``[{"name": ..., "value": ...}, ...]``
            logger: Logger instance
        """
        self.path = Path(path)
        self.logger = logger or logging.getLogger("widget")
    
    def load(self) -> list[TrackedSource]:
        """
        Read tracked forums, keeping only well-formed entries.
        
        A missing or unreadable file yields an empty list.
        """
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return []
        except (OSError, json.JSONDecodeError) as e:
            self.logger.warning(f"Could not read {self.path}: {e}")
            return []
        
        if not isinstance(raw, list):
            return []
        
        sources = []
        for entry in raw:
            if not isinstance(entry, dict):
                continue
            name, value = entry.get("name"), entry.get("value")
            if not isinstance(name, str) or not isinstance(value, str):
                continue
            source = TrackedSource(name=name, value=value)
            if source.is_valid():
                sources.append(source)
        return sources
    
    def save(self, sources: list[TrackedSource]) -> None:
        atomic_write_json(
            self.path,
            [{"name": s.name, "value": s.value} for s in sources]
        )
    
    def add(self, forum_name: str) -> bool:
        """
        Start tracking ``forum_name``.
        
        Returns:
            False if the name is empty or already tracked
        """
        forum_name = (forum_name or "").strip()
        if not forum_name:
            return False
        
        sources = self.load()
        if any(s.value == forum_name for s in sources):
            return False
        
        sources.append(TrackedSource.for_forum(forum_name))
        self.save(sources)
        self.logger.info(f"Tracking {forum_name}")
        return True
    
    def remove(self, index: int) -> Optional[TrackedSource]:
        """
        Stop tracking the forum at ``index``.
        
        Returns:
            The removed entry, or None if the index is out of range
        """
        sources = self.load()
        if not 0 <= index < len(sources):
            return None
        
        removed = sources.pop(index)
        self.save(sources)
        self.logger.info(f"Stopped tracking {removed.value}")
        return removed
    
    def names(self) -> list[str]:
        """Forum names of all tracked sources."""
        return [s.value for s in self.load()]
