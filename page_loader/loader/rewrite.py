"""
Document rewriter for pointing resource references at local copies.

Downloads every local resource of a page concurrently and rewrites the
attributes of the ones that were saved.
"""

import asyncio
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .downloader import ResourceFetcher
from .errors import PageLoaderError, ErrorKind, WRITE_ERROR, UNKNOWN_ERROR
from .events import (
    LoadEvent,
    EventCallback,
    RESOURCES_FOUND,
    RESOURCE_SAVED,
    RESOURCE_FAILED,
)
from .extractor import ResourceExtractor, ResourceReference, parse_html
from ..utils.log import get_logger
from ..utils.paths import (
    derive_resources_dir_name,
    derive_resource_file_name,
    resolve_url,
    to_web_path,
    ensure_dir,
)


@dataclass
class ResolvedResource:
    """Absolute URL and local file name of a reference."""

    url: str
    file_name: str


@dataclass
class RewriteResult:
    """Rewritten markup and per-resource outcomes."""

    html: str
    resources_dir: Optional[str] = None
    # Resource URL -> saved file path
    downloaded: Dict[str, str] = field(default_factory=dict)
    failures: List[PageLoaderError] = field(default_factory=list)


class DocumentRewriter:
    """
    Rewrites local resource references in a page.

    Non-local references and references whose download failed keep
    their original attribute value.
    """

    def __init__(
        self,
        fetcher: ResourceFetcher,
        on_event: Optional[EventCallback] = None,
        concurrency: Optional[int] = None
    ):
        """
        Initialize the document rewriter.

        Args:
            fetcher: Resource fetcher used for downloads
            on_event: Observer called with LoadEvent records
            concurrency: Optional cap on simultaneous downloads
        """
        self.fetcher = fetcher
        self.on_event = on_event
        self.concurrency = concurrency
        self.logger = get_logger("rewriter")

    def _emit(self, name: str, url: Optional[str] = None, **detail) -> None:
        if self.on_event:
            self.on_event(LoadEvent(name=name, url=url, detail=detail))

    async def rewrite(self, html: str, page_url: str, output_dir: str) -> RewriteResult:
        """
        Download local resources and rewrite the page to use them.

        Args:
            html: Fetched page markup
            page_url: URL the page was fetched from
            output_dir: Directory the page will be saved in

        Returns:
            RewriteResult with the new markup

        Raises:
            PageLoaderError: PERSIST_FAILED if the resources directory
                cannot be created
        """
        soup = parse_html(html)
        references = ResourceExtractor(page_url).extract(soup)

        self._emit(RESOURCES_FOUND, page_url, count=len(references))

        if not references:
            return RewriteResult(html=html)

        dir_name = derive_resources_dir_name(page_url)
        dir_path = os.path.join(output_dir, dir_name)

        try:
            ensure_dir(dir_path)
        except OSError as e:
            raise PageLoaderError(
                ErrorKind.PERSIST_FAILED,
                f"Failed to create resources directory: {e}",
                WRITE_ERROR,
                path=dir_path
            ) from e

        result = RewriteResult(html=html, resources_dir=dir_path)
        semaphore = asyncio.Semaphore(self.concurrency) if self.concurrency else None

        tasks = [
            self._process(reference, page_url, dir_name, dir_path, semaphore, result)
            for reference in references
        ]
        # Every download settles before serialization
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)
        for reference, outcome in zip(references, outcomes):
            if isinstance(outcome, Exception):
                self._record_unexpected(reference, page_url, outcome, result)

        if result.failures:
            self.logger.warning(
                f"{len(result.failures)} of {len(references)} resources failed to download"
            )

        result.html = str(soup)
        return result

    def resolve(self, reference: ResourceReference, page_url: str) -> ResolvedResource:
        """Compute the absolute URL and local file name of a reference."""
        return ResolvedResource(
            url=resolve_url(reference.raw_value, page_url),
            file_name=derive_resource_file_name(reference.raw_value, page_url)
        )

    def _record_unexpected(
        self,
        reference: ResourceReference,
        page_url: str,
        error: Exception,
        result: RewriteResult
    ) -> None:
        """Turn an unexpected download exception into a resource failure."""
        url = resolve_url(reference.raw_value, page_url)
        self.logger.error(f"Unexpected error downloading {url}: {error!r}")
        failure = PageLoaderError(
            ErrorKind.RESOURCE_FETCH_FAILED,
            f"Failed to download resource: {error}",
            UNKNOWN_ERROR,
            url=url
        )
        result.failures.append(failure)
        self._emit(
            RESOURCE_FAILED,
            url,
            kind=reference.kind.value,
            cause=failure.cause,
            status=None,
            message=failure.message
        )

    async def _process(
        self,
        reference: ResourceReference,
        page_url: str,
        dir_name: str,
        dir_path: str,
        semaphore: Optional[asyncio.Semaphore],
        result: RewriteResult
    ) -> None:
        """Download one reference and patch its attribute on success."""
        resolved = self.resolve(reference, page_url)
        local_path = os.path.join(dir_path, resolved.file_name)

        try:
            if semaphore:
                async with semaphore:
                    await self.fetcher.download(resolved.url, local_path)
            else:
                await self.fetcher.download(resolved.url, local_path)
        except PageLoaderError as e:
            result.failures.append(e)
            self._emit(
                RESOURCE_FAILED,
                resolved.url,
                kind=reference.kind.value,
                cause=e.cause,
                status=e.status,
                message=e.message
            )
            return

        # Each reference owns a distinct element, so patches commute
        new_value = to_web_path(dir_name, resolved.file_name)
        reference.element[reference.attribute] = new_value
        result.downloaded[resolved.url] = local_path

        self._emit(
            RESOURCE_SAVED,
            resolved.url,
            kind=reference.kind.value,
            path=local_path,
            attribute=new_value
        )
