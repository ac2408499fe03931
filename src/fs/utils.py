"""Filesystem helpers: safe names, atomic writes, mtime checks."""
import hashlib
import json
import os
import re
import shutil
import tempfile
from pathlib import Path
from typing import Any, Optional
from urllib.parse import unquote, urlparse


INVALID_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
RESERVED_NAMES = {
    "CON", "PRN", "AUX", "NUL",
    *(f"COM{i}" for i in range(1, 10)),
    *(f"LPT{i}" for i in range(1, 10)),
}


def slugify(text: str, max_length: int = 100) -> str:
    """
    Convert text into a filesystem-safe directory name.
    
    Unicode letters are kept, so forum names stay readable on disk.
    
    Args:
        text: Source text
        max_length: Maximum length of the result
        
    Returns:
        Safe name, or "untitled" if nothing usable remains
    """
    text = re.sub(r"[\r\n\t]", " ", text)
    text = INVALID_CHARS.sub("", text)
    text = re.sub(r" {2,}", " ", text).strip()
    text = text[:max_length]
    
    # Windows refuses trailing dots and spaces
    text = text.rstrip(". ")
    
    if not text:
        return "untitled"
    
    if text.upper() in RESERVED_NAMES:
        text = "_" + text
    
    return text


def sanitize_filename(filename: str) -> str:
    """
    Sanitize a filename while keeping its extension.
    
    Args:
        filename: Raw filename
        
    Returns:
        Safe filename, or "unnamed" for empty input
    """
    if not filename:
        return "unnamed"
    
    stem, dot, ext = filename.rpartition(".")
    if not dot:
        stem, ext = filename, ""
    
    stem = INVALID_CHARS.sub("", stem)
    stem = re.sub(r" {2,}", " ", stem).strip().rstrip(". ")
    ext = INVALID_CHARS.sub("", ext).strip()
    
    if not stem:
        stem = "unnamed"
    if stem.upper() in RESERVED_NAMES:
        stem = "_" + stem
    
    return f"{stem}.{ext}" if ext else stem


def filename_from_url(url: str) -> str:
    """
    Derive the local filename of an image from its URL.
    
    The name is the last segment of the URL path, so the same URL always
    maps to the same file and an existing file marks a finished download.
    
    Args:
        url: Image URL
        
    Returns:
        Sanitized filename
    """
    name = Path(unquote(urlparse(url).path)).name
    if not name:
        digest = hashlib.sha1(url.encode("utf-8")).hexdigest()[:16]
        return f"image_{digest}.jpg"
    return sanitize_filename(name)


def ensure_directory(path: str | Path) -> Path:
    """
    Create directory (and parents) if missing.
    
    Args:
        path: Directory path
        
    Returns:
        Path object of the directory
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_mtime(path: str | Path) -> Optional[float]:
    """
    Return last modification time as a POSIX timestamp, or None if missing.

    Raises:
        OSError: If the path exists but cannot be inspected
    """
    try:
        return Path(path).stat().st_mtime
    except FileNotFoundError:
        return None


def remove_path(path: str | Path) -> None:
    """Delete a file or a whole directory tree. Missing paths are ignored."""
    path = Path(path)
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


def atomic_write_json(path: str | Path, data: Any) -> None:
    """
    Write JSON to a file atomically (temp file + rename).
    
    Args:
        path: Target file
        data: JSON-serializable object
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
