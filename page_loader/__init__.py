"""
Page Loader - download a web page together with its local resources.

This package fetches a single page, downloads the images, stylesheets,
canonical links and scripts hosted on the same origin, and rewrites the
page so it references the downloaded copies.
"""

__version__ = "1.0.0"
__author__ = "Page Loader Team"

from .loader import PageLoader, LoadResult, load_page
from .loader.errors import PageLoaderError, ErrorKind

__all__ = [
    "PageLoader",
    "LoadResult",
    "load_page",
    "PageLoaderError",
    "ErrorKind",
]
