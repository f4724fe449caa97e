"""
Main page loader module.

Orchestrates loading a page: input validation, fetching the page,
downloading and rewriting its local resources, and saving the result.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

import aiohttp

from .downloader import ResourceFetcher, fetch_document
from .errors import (
    PageLoaderError,
    ErrorKind,
    INVALID_URL,
    ENOENT,
    ENOTDIR,
    EACCES,
    WRITE_ERROR,
)
from .events import (
    LoadEvent,
    EventCallback,
    logging_observer,
    VALIDATED,
    DOCUMENT_FETCHED,
    DOCUMENT_SAVED,
)
from .rewrite import DocumentRewriter
from ..utils.log import get_logger
from ..utils.paths import derive_document_file_name, is_valid_page_url
from ..utils.constants import (
    DEFAULT_USER_AGENT,
    DEFAULT_PAGE_TIMEOUT,
    DEFAULT_RESOURCE_TIMEOUT,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_CONCURRENCY,
)


class LoadState(Enum):
    """Phases of a page load."""

    IDLE = "idle"
    VALIDATING_INPUT = "validating_input"
    FETCHING_DOCUMENT = "fetching_document"
    REWRITING_RESOURCES = "rewriting_resources"
    PERSISTING_DOCUMENT = "persisting_document"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PageRequest:
    """Validated input of a page load."""

    url: str
    output_dir: str


@dataclass
class LoadResult:
    """Results of a page load."""

    html_file_path: str
    resources_dir: Optional[str] = None
    downloaded: Dict[str, str] = field(default_factory=dict)
    failures: List[PageLoaderError] = field(default_factory=list)


class PageLoader:
    """
    Downloads one page and its same-host resources.

    Each call to load() is independent; the loader keeps no state
    between runs apart from the last reached phase.
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        page_timeout: float = DEFAULT_PAGE_TIMEOUT,
        resource_timeout: float = DEFAULT_RESOURCE_TIMEOUT,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        user_agent: str = DEFAULT_USER_AGENT,
        concurrency: Optional[int] = DEFAULT_CONCURRENCY,
        on_event: Optional[EventCallback] = None
    ):
        """
        Initialize the page loader.

        Args:
            session: aiohttp session to use; one is created per run if omitted
            page_timeout: Root page timeout in seconds
            resource_timeout: Per-resource timeout in seconds
            max_redirects: Maximum redirects followed by any request
            user_agent: User agent string for requests made with an own session
            concurrency: Optional cap on simultaneous resource downloads
            on_event: Observer called with LoadEvent records; events are
                logged when omitted
        """
        self.session = session
        self.page_timeout = page_timeout
        self.resource_timeout = resource_timeout
        self.max_redirects = max_redirects
        self.user_agent = user_agent
        self.concurrency = concurrency
        self.logger = get_logger("loader")
        self.on_event = on_event or logging_observer(self.logger)
        self.state = LoadState.IDLE

    def _emit(self, name: str, url: Optional[str] = None, **detail) -> None:
        self.on_event(LoadEvent(name=name, url=url, detail=detail))

    async def load(self, url: str, output_dir: Optional[str] = None) -> LoadResult:
        """
        Load a page into an output directory.

        Args:
            url: Absolute http(s) URL of the page
            output_dir: Existing writable directory (default: current directory)

        Returns:
            LoadResult with the absolute path of the saved page

        Raises:
            PageLoaderError: On invalid input, a failed page fetch, or a
                failed write of the page
        """
        self.logger.debug(f"Starting page-loader for URL: {url}")

        try:
            self.state = LoadState.VALIDATING_INPUT
            request = self.validate(url, output_dir)
            self._emit(VALIDATED, request.url, output_dir=request.output_dir)

            if self.session is not None:
                result = await self._run(request, self.session)
            else:
                async with aiohttp.ClientSession(
                    headers={"User-Agent": self.user_agent}
                ) as session:
                    result = await self._run(request, session)
        except PageLoaderError as e:
            self.state = LoadState.FAILED
            self.logger.debug(f"Load failed ({e.kind.name}/{e.cause}): {e.message}")
            raise
        except Exception:
            self.state = LoadState.FAILED
            raise

        self.state = LoadState.DONE
        return result

    def validate(self, url: str, output_dir: Optional[str] = None) -> PageRequest:
        """
        Check the URL and the output directory.

        Args:
            url: Candidate page URL
            output_dir: Candidate output directory

        Returns:
            PageRequest with the normalized URL and absolute directory

        Raises:
            PageLoaderError: INVALID_INPUT or INVALID_OUTPUT_TARGET
        """
        if not is_valid_page_url(url):
            raise PageLoaderError(
                ErrorKind.INVALID_INPUT,
                f"Invalid URL: {url}. Please provide a valid URL including "
                f"protocol (e.g., https://example.com)",
                INVALID_URL,
                url=url
            )

        output_dir = os.path.abspath(output_dir or os.getcwd())

        if not os.path.exists(output_dir):
            raise PageLoaderError(
                ErrorKind.INVALID_OUTPUT_TARGET,
                f"Output directory does not exist: {output_dir}",
                ENOENT,
                path=output_dir
            )

        if not os.path.isdir(output_dir):
            raise PageLoaderError(
                ErrorKind.INVALID_OUTPUT_TARGET,
                f"Output path is not a directory: {output_dir}",
                ENOTDIR,
                path=output_dir
            )

        if not os.access(output_dir, os.W_OK):
            raise PageLoaderError(
                ErrorKind.INVALID_OUTPUT_TARGET,
                f"No write permission for output directory: {output_dir}",
                EACCES,
                path=output_dir
            )

        return PageRequest(url=url.strip(), output_dir=output_dir)

    async def _run(self, request: PageRequest, session: aiohttp.ClientSession) -> LoadResult:
        """Fetch, rewrite and persist a validated request."""
        self.state = LoadState.FETCHING_DOCUMENT
        html = await fetch_document(
            session,
            request.url,
            timeout=self.page_timeout,
            max_redirects=self.max_redirects
        )
        self._emit(DOCUMENT_FETCHED, request.url, length=len(html))

        self.state = LoadState.REWRITING_RESOURCES
        fetcher = ResourceFetcher(
            session,
            timeout=self.resource_timeout,
            max_redirects=self.max_redirects
        )
        rewriter = DocumentRewriter(fetcher, self.on_event, self.concurrency)
        rewritten = await rewriter.rewrite(html, request.url, request.output_dir)

        self.state = LoadState.PERSISTING_DOCUMENT
        html_path = os.path.join(request.output_dir, derive_document_file_name(request.url))
        self.save_document(rewritten.html, html_path)
        self._emit(
            DOCUMENT_SAVED,
            request.url,
            path=html_path,
            downloaded=len(rewritten.downloaded),
            failed=len(rewritten.failures)
        )

        return LoadResult(
            html_file_path=html_path,
            resources_dir=rewritten.resources_dir,
            downloaded=rewritten.downloaded,
            failures=rewritten.failures
        )

    def save_document(self, html: str, path: str) -> None:
        """
        Write the final page to disk.

        Raises:
            PageLoaderError: PERSIST_FAILED if the file cannot be written
        """
        self.logger.debug(f"Saving HTML to: {path}")
        try:
            with open(path, 'w', encoding='utf-8') as f:
                f.write(html)
        except OSError as e:
            raise PageLoaderError(
                ErrorKind.PERSIST_FAILED,
                f"Failed to save HTML file: {e}",
                WRITE_ERROR,
                path=path
            ) from e

        self.logger.debug(f"Page saved: {path}")


async def load_page(url: str, output_dir: Optional[str] = None, **options) -> str:
    """
    Load a page and return the path of the saved HTML file.

    Args:
        url: Absolute http(s) URL of the page
        output_dir: Existing writable directory (default: current directory)
        options: Keyword arguments forwarded to PageLoader

    Returns:
        Absolute path of the saved page
    """
    result = await PageLoader(**options).load(url, output_dir)
    return result.html_file_path
