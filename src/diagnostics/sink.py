"""Diagnostics sinks for error reports.

Reports are fire-and-forget: a sink never raises and never changes the
caller's control flow.
"""
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Optional


def _render(value: Any) -> Any:
    """Make a context value JSON friendly."""
    if isinstance(value, BaseException):
        return {"type": type(value).__name__, "message": str(value)}
    if isinstance(value, dict):
        return {str(k): _render(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_render(v) for v in value]
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


class Diagnostics(ABC):
    """Interface of a diagnostics sink."""

    @abstractmethod
    def log_error(self, context: Any, label: str) -> None:
        """Record ``context`` under ``label``. Must not raise."""


class NullDiagnostics(Diagnostics):
    """Sink that drops every report. Used when debugging is off."""
    
    def log_error(self, context: Any, label: str) -> None:
        return None


class FileDiagnostics(Diagnostics):
    """Writes error reports to the log and to ``errors.jsonl``."""
    
    def __init__(
        self,
        log_dir: str | Path = "logs",
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize file sink.
        
        Args:
            log_dir: Directory holding errors.jsonl
            logger: Logger instance
        """
        self.path = Path(log_dir) / "errors.jsonl"
        self.logger = logger or logging.getLogger("widget")
    
    def log_error(self, context: Any, label: str) -> None:
        try:
            rendered = _render(context)
            self.logger.error(f"[{label}] {rendered}")
            line = json.dumps(
                {
                    "label": label,
                    "logged_at": datetime.now().isoformat(),
                    "context": rendered,
                },
                ensure_ascii=False,
                default=str
            )
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except Exception as e:
            self.logger.warning(f"Failed to record diagnostics for {label}: {e}")
