"""
Diagnostic events emitted while a page loads.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional


# Event names
VALIDATED = "validated"
DOCUMENT_FETCHED = "document_fetched"
RESOURCES_FOUND = "resources_found"
RESOURCE_SAVED = "resource_saved"
RESOURCE_FAILED = "resource_failed"
DOCUMENT_SAVED = "document_saved"


@dataclass
class LoadEvent:
    """A single progress or failure notification."""
    
    name: str
    url: Optional[str] = None
    detail: Dict[str, Any] = field(default_factory=dict)


EventCallback = Callable[[LoadEvent], None]


def logging_observer(logger: logging.Logger) -> EventCallback:
    """
    Build an observer that writes events to a logger.
    
    Resource failures are logged as warnings, everything else as debug.
    
    Args:
        logger: Destination logger
        
    Returns:
        Event callback
    """
    def observe(event: LoadEvent) -> None:
        if event.name == RESOURCE_FAILED:
            logger.warning(f"✗ {event.detail.get('message', event.url)}")
        else:
            logger.debug(f"{event.name}: {event.url} {event.detail or ''}".rstrip())
    
    return observe
