from hashwatch.sources.apify import ApifyHashtagSource
from hashwatch.sources.base import PostSource

__all__ = [
    "PostSource",
    "ApifyHashtagSource",
]
