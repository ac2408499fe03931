"""Application layer: entry orchestration and timeout racing."""
from .orchestrator import EntryOrchestrator
from .timeout import run_with_timeout

__all__ = ["EntryOrchestrator", "run_with_timeout"]
