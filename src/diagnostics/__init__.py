"""Best-effort error diagnostics."""
from .sink import Diagnostics, NullDiagnostics, FileDiagnostics

__all__ = ["Diagnostics", "NullDiagnostics", "FileDiagnostics"]
