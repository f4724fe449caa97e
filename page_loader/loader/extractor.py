"""
Resource extractor for finding embedded references in a page.

Uses BeautifulSoup for HTML parsing.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from bs4 import BeautifulSoup, FeatureNotFound, Tag

from ..utils.log import get_logger
from ..utils.paths import is_local_resource


class ResourceKind(Enum):
    """Kind of tag a resource reference was found in."""

    IMAGE = "image"
    STYLESHEET = "stylesheet"
    CANONICAL_LINK = "canonical"
    SCRIPT = "script"


# link rel tokens that carry a downloadable resource
LINK_KINDS = {
    'stylesheet': ResourceKind.STYLESHEET,
    'canonical': ResourceKind.CANONICAL_LINK,
}


@dataclass
class ResourceReference:
    """A resource-bearing attribute found in the document."""

    raw_value: str
    kind: ResourceKind
    element: Tag
    attribute: str


def parse_html(html: str) -> BeautifulSoup:
    """
    Parse HTML into a BeautifulSoup tree.

    Args:
        html: HTML markup

    Returns:
        Parsed document
    """
    try:
        return BeautifulSoup(html, 'lxml')
    except FeatureNotFound:
        return BeautifulSoup(html, 'html.parser')


def _classify(element: Tag) -> Optional[ResourceKind]:
    """Get the resource kind of a tag, or None if it carries no resource."""
    if element.name == 'img':
        return ResourceKind.IMAGE
    if element.name == 'script':
        return ResourceKind.SCRIPT
    if element.name == 'link':
        rel = element.get('rel') or []
        if isinstance(rel, str):
            rel = rel.split()
        for token in rel:
            kind = LINK_KINDS.get(token.lower())
            if kind:
                return kind
    return None


def _attribute_for(kind: ResourceKind) -> str:
    if kind in (ResourceKind.IMAGE, ResourceKind.SCRIPT):
        return 'src'
    return 'href'


class ResourceExtractor:
    """
    Finds local resource references in a parsed page.

    Scans img[src], link[rel=stylesheet][href], link[rel=canonical][href]
    and script[src] once, in document order.
    """

    def __init__(self, page_url: str):
        """
        Initialize the resource extractor.

        Args:
            page_url: URL of the page, used to resolve and classify references
        """
        self.page_url = page_url
        self.logger = get_logger("extractor")

    def extract(self, soup: BeautifulSoup) -> List[ResourceReference]:
        """
        Extract local resource references from a document.

        Args:
            soup: Parsed document

        Returns:
            References in document order, same-host ones only
        """
        references: List[ResourceReference] = []
        skipped = 0

        for element in soup.find_all(['img', 'link', 'script']):
            kind = _classify(element)
            if kind is None:
                continue

            attribute = _attribute_for(kind)
            value = element.get(attribute)
            if not isinstance(value, str) or not value.strip():
                continue

            if not is_local_resource(value, self.page_url):
                skipped += 1
                continue

            references.append(ResourceReference(
                raw_value=value,
                kind=kind,
                element=element,
                attribute=attribute
            ))

        self.logger.debug(
            f"Extracted from {self.page_url}: "
            f"{len(references)} local resources, {skipped} external skipped"
        )

        return references
