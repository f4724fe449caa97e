"""
HTTP downloader for the root page and its resources.

Uses aiohttp for asynchronous requests with bounded timeouts and redirects.
"""

import asyncio
import codecs
import errno
import socket
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple
from urllib.parse import urlparse

import aiohttp
from aiohttp import ClientTimeout, ClientError

from .errors import (
    PageLoaderError,
    ErrorKind,
    HTTP_ERROR,
    ENOTFOUND,
    ECONNREFUSED,
    ETIMEDOUT,
    NETWORK_ERROR,
    WRITE_ERROR,
)
from ..utils.log import get_logger
from ..utils.constants import (
    DEFAULT_PAGE_TIMEOUT,
    DEFAULT_RESOURCE_TIMEOUT,
    DEFAULT_MAX_REDIRECTS,
)


@dataclass
class FetchResponse:
    """Response of a completed GET request."""

    url: str
    status: int
    reason: str
    body: bytes
    charset: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Statuses in [200, 400) count as success."""
        return 200 <= self.status < 400

    def text(self) -> str:
        """Decode the body using the response charset, UTF-8 if it is unknown."""
        encoding = self.charset or 'utf-8'
        try:
            codecs.lookup(encoding)
        except LookupError:
            encoding = 'utf-8'
        return self.body.decode(encoding, errors='replace')


async def http_get(
    session: aiohttp.ClientSession,
    url: str,
    timeout: float,
    max_redirects: int = DEFAULT_MAX_REDIRECTS
) -> FetchResponse:
    """
    Issue a GET request and read the whole body.

    Args:
        session: aiohttp session
        url: URL to fetch
        timeout: Total request timeout in seconds
        max_redirects: Maximum redirects to follow

    Returns:
        FetchResponse with raw body bytes

    Raises:
        aiohttp.ClientError, asyncio.TimeoutError: On transport failure
    """
    async with session.get(
        url,
        timeout=ClientTimeout(total=timeout),
        allow_redirects=True,
        max_redirects=max_redirects
    ) as response:
        body = await response.read()
        return FetchResponse(
            url=str(response.url),
            status=response.status,
            reason=response.reason or '',
            body=body,
            charset=response.charset,
            headers=dict(response.headers)
        )


def describe_transport_error(error: BaseException, url: str) -> Tuple[str, str]:
    """
    Classify a transport exception.

    Args:
        error: Exception raised by http_get
        url: URL that was requested

    Returns:
        Tuple of (cause code, human readable detail)
    """
    host = urlparse(url).netloc

    if isinstance(error, asyncio.TimeoutError):
        return ETIMEDOUT, f"timeout: {url}"

    if isinstance(error, aiohttp.ClientConnectorError):
        os_error = error.os_error
        if isinstance(os_error, socket.gaierror):
            return ENOTFOUND, f"host not found: {host}"
        refused = getattr(os_error, 'errno', None) == errno.ECONNREFUSED
        if refused or isinstance(os_error, ConnectionRefusedError):
            return ECONNREFUSED, f"connection refused: {host}"

    return NETWORK_ERROR, str(error) or error.__class__.__name__


async def fetch_document(
    session: aiohttp.ClientSession,
    url: str,
    timeout: float = DEFAULT_PAGE_TIMEOUT,
    max_redirects: int = DEFAULT_MAX_REDIRECTS
) -> str:
    """
    Fetch the root page and return its decoded markup.

    Args:
        session: aiohttp session
        url: Page URL
        timeout: Total request timeout in seconds
        max_redirects: Maximum redirects to follow

    Returns:
        Page HTML as text

    Raises:
        PageLoaderError: DOCUMENT_FETCH_FAILED on any transport or HTTP failure
    """
    try:
        response = await http_get(session, url, timeout, max_redirects)
    except (ClientError, asyncio.TimeoutError) as e:
        cause, detail = describe_transport_error(e, url)
        if cause == NETWORK_ERROR:
            message = f"Failed to load page: {detail}"
        else:
            message = f"Failed to load page - {detail}"
        raise PageLoaderError(
            ErrorKind.DOCUMENT_FETCH_FAILED, message, cause, url=url
        ) from e

    if not response.ok:
        raise PageLoaderError(
            ErrorKind.DOCUMENT_FETCH_FAILED,
            f"Failed to load page: {response.status} {response.reason}".rstrip(),
            HTTP_ERROR,
            url=url,
            status=response.status
        )

    return response.text()


class ResourceFetcher:
    """
    Downloads single page resources.

    Fetching and saving are separate steps so the byte sink can be
    swapped without touching the network logic. Nothing is retried.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        timeout: float = DEFAULT_RESOURCE_TIMEOUT,
        max_redirects: int = DEFAULT_MAX_REDIRECTS
    ):
        """
        Initialize the resource fetcher.

        Args:
            session: aiohttp session shared by the run
            timeout: Per-resource timeout in seconds
            max_redirects: Maximum redirects to follow
        """
        self.session = session
        self.timeout = timeout
        self.max_redirects = max_redirects
        self.logger = get_logger("downloader")

    async def fetch(self, url: str) -> bytes:
        """
        Download a resource's raw bytes.

        Args:
            url: Absolute resource URL

        Returns:
            Response body, untouched

        Raises:
            PageLoaderError: RESOURCE_FETCH_FAILED on transport or HTTP failure
        """
        self.logger.debug(f"Downloading resource: {url}")

        try:
            response = await http_get(self.session, url, self.timeout, self.max_redirects)
        except (ClientError, asyncio.TimeoutError) as e:
            cause, detail = describe_transport_error(e, url)
            if cause == NETWORK_ERROR:
                message = f"Failed to download resource - network error: {detail}"
            else:
                message = f"Failed to download resource - {detail}"
            raise PageLoaderError(
                ErrorKind.RESOURCE_FETCH_FAILED, message, cause, url=url
            ) from e

        if not response.ok:
            raise PageLoaderError(
                ErrorKind.RESOURCE_FETCH_FAILED,
                f"Failed to download resource ({response.status} {response.reason}): {url}",
                HTTP_ERROR,
                url=url,
                status=response.status
            )

        self.logger.debug(f"Resource downloaded: {url} ({len(response.body)} bytes)")
        return response.body

    def save(self, content: bytes, path: str) -> str:
        """
        Write resource bytes to disk.

        Args:
            content: Raw resource bytes
            path: Destination file path

        Returns:
            The path written

        Raises:
            PageLoaderError: PERSIST_FAILED if the file cannot be written
        """
        try:
            with open(path, 'wb') as f:
                f.write(content)
        except OSError as e:
            raise PageLoaderError(
                ErrorKind.PERSIST_FAILED,
                f"Failed to save resource {path}: {e}",
                WRITE_ERROR,
                path=path
            ) from e

        self.logger.debug(f"Resource saved: {path}")
        return path

    async def download(self, url: str, path: str) -> str:
        """
        Fetch a resource and save it.

        Args:
            url: Absolute resource URL
            path: Destination file path

        Returns:
            The path written
        """
        content = await self.fetch(url)
        try:
            return self.save(content, path)
        except PageLoaderError as e:
            e.url = url
            raise
