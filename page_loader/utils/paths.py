"""
Path and URL utilities for the page loader.

Provides deterministic file naming for pages and resources, same-origin
checks, and directory management.
"""

import os
import posixpath
import re
from typing import Optional
from urllib.parse import urljoin, urldefrag, urlparse, ParseResult


SCHEME_PATTERN = re.compile(r'^https?://', re.IGNORECASE)
UNSAFE_CHARS_PATTERN = re.compile(r'[^A-Za-z0-9]')

DEFAULT_PORTS = {'http': 80, 'https': 443}

# Extension used when a URL path does not carry one
DEFAULT_EXTENSION = '.html'


def derive_base_name(url: str) -> str:
    """
    Convert a URL into a filesystem-safe base name.

    The scheme is removed and every character outside [A-Za-z0-9] in
    the rest of the URL (host, path and query) becomes a hyphen.

    Args:
        url: Absolute URL

    Returns:
        Base name string, e.g. 'example-com-page' for https://example.com/page
    """
    without_scheme = SCHEME_PATTERN.sub('', url)
    return UNSAFE_CHARS_PATTERN.sub('-', without_scheme)


def derive_document_file_name(url: str) -> str:
    """File name for the saved page."""
    return f"{derive_base_name(url)}.html"


def derive_resources_dir_name(url: str) -> str:
    """Directory name holding the page's downloaded resources."""
    return f"{derive_base_name(url)}_files"


def resolve_url(resource_url: str, base_url: str) -> str:
    """
    Resolve a resource reference against the page URL.

    Args:
        resource_url: Raw attribute value (relative or absolute)
        base_url: URL of the page containing the reference

    Returns:
        Absolute URL without its fragment
    """
    resolved = urljoin(base_url, resource_url.strip())
    return urldefrag(resolved)[0]


def get_extension(url: str) -> str:
    """
    Get the file extension of a URL's final path segment.

    Args:
        url: Absolute URL

    Returns:
        Extension including the dot, or '.html' when the path is empty,
        '/', or its last segment has no extension
    """
    path = urlparse(url).path

    if path in ('', '/'):
        return DEFAULT_EXTENSION

    extension = posixpath.splitext(path)[1]
    return extension or DEFAULT_EXTENSION


def derive_resource_file_name(resource_url: str, base_url: str) -> str:
    """
    Derive the local file name for a resource.

    The resource is resolved against the page URL and named after the
    resolved URL. A trailing hyphenated copy of the extension is dropped
    before the real extension is appended, so /image.png becomes
    'example-com-image.png' rather than 'example-com-image-png.png'.

    Args:
        resource_url: Raw attribute value
        base_url: URL of the page containing the reference

    Returns:
        File name for the resource inside the resources directory
    """
    full_url = resolve_url(resource_url, base_url)
    file_name = derive_base_name(full_url)
    extension = get_extension(full_url)

    hyphenated = '-' + extension[1:]
    if len(extension) > 1 and file_name.endswith(hyphenated):
        file_name = file_name[:-len(hyphenated)]

    return f"{file_name}{extension}"


def _origin_host(parsed: ParseResult) -> Optional[str]:
    """Host with non-default port, or None if the URL has no host."""
    hostname = parsed.hostname
    if not hostname:
        return None

    # Raises ValueError for an out-of-range or non-numeric port
    port = parsed.port
    if port is None or port == DEFAULT_PORTS.get(parsed.scheme.lower()):
        return hostname
    return f"{hostname}:{port}"


def is_local_resource(resource_url: str, page_url: str) -> bool:
    """
    Check if a resource reference lives on the same host as the page.

    Hosts are compared including the port. References that cannot be
    resolved are never local.

    Args:
        resource_url: Raw attribute value
        page_url: URL of the page containing the reference

    Returns:
        True if the resolved reference shares the page's host
    """
    try:
        resolved = urlparse(resolve_url(resource_url, page_url))
        page = urlparse(page_url)
        resource_host = _origin_host(resolved)
        page_host = _origin_host(page)
    except ValueError:
        return False

    if resource_host is None or page_host is None:
        return False

    return resource_host == page_host


def is_valid_page_url(url: str) -> bool:
    """
    Check if a string is an absolute http(s) URL with a host.

    Args:
        url: Candidate URL

    Returns:
        True if the URL can be loaded
    """
    if not isinstance(url, str) or not url.strip():
        return False

    try:
        parsed = urlparse(url.strip())
        host = _origin_host(parsed)
    except ValueError:
        return False

    return parsed.scheme.lower() in DEFAULT_PORTS and host is not None


def to_web_path(*parts: str) -> str:
    """
    Join path parts with forward slashes for use in HTML attributes.

    Args:
        parts: Path segments

    Returns:
        Web-relative path string
    """
    return posixpath.join(*parts)


def ensure_dir(path: str) -> None:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists
    """
    os.makedirs(path, exist_ok=True)
