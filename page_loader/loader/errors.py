"""
Error types raised by the page loader.

A single exception class carries a kind discriminant plus the context
needed to report the failure or map it to an exit code.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Category of a page loader failure."""
    
    INVALID_INPUT = "invalid_input"
    INVALID_OUTPUT_TARGET = "invalid_output_target"
    DOCUMENT_FETCH_FAILED = "document_fetch_failed"
    RESOURCE_FETCH_FAILED = "resource_fetch_failed"
    PERSIST_FAILED = "persist_failed"


# Cause codes
INVALID_URL = "INVALID_URL"
ENOENT = "ENOENT"
ENOTDIR = "ENOTDIR"
EACCES = "EACCES"
HTTP_ERROR = "HTTP_ERROR"
ENOTFOUND = "ENOTFOUND"
ECONNREFUSED = "ECONNREFUSED"
ETIMEDOUT = "ETIMEDOUT"
NETWORK_ERROR = "NETWORK_ERROR"
WRITE_ERROR = "WRITE_ERROR"
UNKNOWN_ERROR = "UNKNOWN_ERROR"


class PageLoaderError(Exception):
    """
    Failure raised while loading a page.
    
    Attributes:
        kind: Failure category
        cause: Specific cause code (e.g. HTTP_ERROR, ENOENT)
        url: Offending URL, if any
        status: HTTP status for HTTP_ERROR causes
        path: Offending filesystem path, if any
    """
    
    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        cause: str,
        url: Optional[str] = None,
        status: Optional[int] = None,
        path: Optional[str] = None
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.cause = cause
        self.url = url
        self.status = status
        self.path = path
    
    def __repr__(self) -> str:
        return f"PageLoaderError({self.kind.name}, {self.cause}, {self.message!r})"
