"""Shared fakes for network-free tests."""
import asyncio

import pytest

from src.domain import Item
from src.downloader import FetchResult, ProbeResult


class FakeFetcher:
    """In-memory stand-in for HttpFetcher."""

    def __init__(self, sizes=None, bodies=None, failing=None, statuses=None, delay=0.0):
        self.sizes = dict(sizes or {})
        self.bodies = dict(bodies or {})
        self.failing = set(failing or [])
        self.statuses = dict(statuses or {})
        self.delay = delay
        self.head_calls = []
        self.get_calls = []

    async def head(self, url):
        self.head_calls.append(url)
        if url not in self.sizes:
            return ProbeResult(error="HTTP 404")
        return ProbeResult(content_length=self.sizes[url])

    async def get_bytes(self, url):
        self.get_calls.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        if url in self.failing:
            return FetchResult(error="ClientConnectorError: connection refused")
        if url in self.statuses:
            return FetchResult(status=self.statuses[url])
        if url not in self.bodies:
            return FetchResult(status=404)
        return FetchResult(status=200, data=self.bodies[url])


class RecordingDiagnostics:
    """Diagnostics sink that keeps every report."""

    def __init__(self):
        self.reports = []

    def log_error(self, context, label):
        self.reports.append((label, context))


def image_url(name: str) -> str:
    return f"https://tiebapic.example.com/forum/pic/item/{name}.jpg"


def make_fetcher(names, size=1000, **kwargs):
    """Fetcher where every named image exists with the given size."""
    urls = [image_url(n) for n in names]
    return FakeFetcher(
        sizes={u: size for u in urls},
        bodies={u: f"bytes of {u}".encode() for u in urls},
        **kwargs
    )


@pytest.fixture
def diagnostics():
    return RecordingDiagnostics()


@pytest.fixture
def make_item():
    def factory(names=(), abstract=None, title="post"):
        return Item(
            title=title,
            abstract=abstract,
            image_urls=[image_url(n) for n in names],
        )
    return factory
