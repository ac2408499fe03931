"""Filesystem utilities and image directory housekeeping."""
from .utils import (
    slugify,
    sanitize_filename,
    ensure_directory,
    atomic_write_json,
    filename_from_url,
    get_mtime,
    remove_path,
)
from .housekeeper import DirectoryHousekeeper

__all__ = [
    "slugify",
    "sanitize_filename",
    "ensure_directory",
    "atomic_write_json",
    "filename_from_url",
    "get_mtime",
    "remove_path",
    "DirectoryHousekeeper",
]
