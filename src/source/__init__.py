"""Remote post source."""
from .extractor import ThreadListExtractor
from .tieba import TiebaClient

__all__ = ["ThreadListExtractor", "TiebaClient"]
