"""
Loader module for saving a page with its resources.

Contains components for fetching, extracting, downloading, and rewriting.
"""

from .loader import PageLoader, PageRequest, LoadResult, LoadState, load_page
from .extractor import ResourceExtractor, ResourceReference, ResourceKind
from .downloader import ResourceFetcher, FetchResponse, fetch_document
from .rewrite import DocumentRewriter, RewriteResult, ResolvedResource
from .events import LoadEvent
from .errors import PageLoaderError, ErrorKind

__all__ = [
    "PageLoader",
    "PageRequest",
    "LoadResult",
    "LoadState",
    "load_page",
    "ResourceExtractor",
    "ResourceReference",
    "ResourceKind",
    "ResourceFetcher",
    "FetchResponse",
    "fetch_document",
    "DocumentRewriter",
    "RewriteResult",
    "ResolvedResource",
    "LoadEvent",
    "PageLoaderError",
    "ErrorKind",
]
