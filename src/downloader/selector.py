"""Pick the images of a post that are small enough to show."""
from typing import Optional

from .fetcher import HttpFetcher


def max_images_for(abstract: Optional[str], two_image_threshold: int) -> int:
    """
    How many images a post may show.
    
    Posts without an abstract show up to three images; a short abstract
    leaves room for two, a long one for a single image.
    """
    if not abstract:
        return 3
    if len(abstract) < two_image_threshold:
        return 2
    return 1


async def select_by_size(
    fetcher: HttpFetcher,
    urls: list[str],
    max_bytes: int,
    max_count: int
) -> list[str]:
    """
    Select up to ``max_count`` URLs whose size is known and within budget.
    
    URLs are probed one by one in order with a HEAD request, and probing
    stops as soon as enough URLs are accepted. A failed probe or a missing
    Content-Length rejects the URL.
    
    Args:
        fetcher: Object providing ``head(url)``
        urls: Candidate image URLs
        max_bytes: Largest acceptable size
        max_count: Maximum number of URLs to return
        
    Returns:
        Accepted URLs in their original order
    """
    selected: list[str] = []
    for url in urls:
        if len(selected) >= max_count:
            break
        probe = await fetcher.head(url)
        if probe.error or not probe.content_length:
            continue
        if probe.content_length <= max_bytes:
            selected.append(url)
    return selected
