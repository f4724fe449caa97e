"""
Utility modules for the page loader.

Contains logging, URL and path naming utilities, and constants.
"""

from .log import setup_logger, get_logger
from .paths import (
    derive_base_name,
    derive_document_file_name,
    derive_resources_dir_name,
    derive_resource_file_name,
    is_local_resource,
    ensure_dir,
)
from .constants import (
    DEFAULT_USER_AGENT,
    DEFAULT_PAGE_TIMEOUT,
    DEFAULT_RESOURCE_TIMEOUT,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_CONCURRENCY,
)

__all__ = [
    "setup_logger",
    "get_logger",
    "derive_base_name",
    "derive_document_file_name",
    "derive_resources_dir_name",
    "derive_resource_file_name",
    "is_local_resource",
    "ensure_dir",
    "DEFAULT_USER_AGENT",
    "DEFAULT_PAGE_TIMEOUT",
    "DEFAULT_RESOURCE_TIMEOUT",
    "DEFAULT_MAX_REDIRECTS",
    "DEFAULT_CONCURRENCY",
]
