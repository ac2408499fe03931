"""Image selection and async prefetch."""
from .downloader import ImageDownloader
from .fetcher import HttpFetcher, ProbeResult, FetchResult
from .limiter import HostLimiter
from .selector import max_images_for, select_by_size

__all__ = [
    "ImageDownloader",
    "HttpFetcher",
    "ProbeResult",
    "FetchResult",
    "HostLimiter",
    "max_images_for",
    "select_by_size",
]
