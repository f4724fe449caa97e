#!/usr/bin/env python3
"""
Page Loader - download a web page for offline viewing.

Fetches one page, downloads its same-host images, stylesheets, canonical
links and scripts into a sibling "_files" directory, and rewrites the
page to reference them.

Usage:
    page-loader --output /tmp/pages https://example.com/page

Debug output:
    page-loader --debug https://example.com
    DEBUG=page-loader* page-loader https://example.com
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

from page_loader import __version__
from page_loader.loader import PageLoader, LoadEvent
from page_loader.loader.errors import PageLoaderError, ErrorKind
from page_loader.loader.events import RESOURCES_FOUND, RESOURCE_SAVED, RESOURCE_FAILED
from page_loader.utils.constants import (
    DEFAULT_USER_AGENT,
    DEFAULT_PAGE_TIMEOUT,
    DEFAULT_RESOURCE_TIMEOUT,
)
from page_loader.utils.log import (
    setup_logger,
    debug_enabled_by_env,
    create_progress,
    print_error,
    print_warning,
)


# Exit codes by failure kind
EXIT_CODES = {
    ErrorKind.INVALID_INPUT: 2,
    ErrorKind.INVALID_OUTPUT_TARGET: 3,
    ErrorKind.DOCUMENT_FETCH_FAILED: 4,
    ErrorKind.PERSIST_FAILED: 5,
}


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Args:
        argv: Argument list (default: sys.argv[1:])

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog='page-loader',
        description='Download a web page together with its local resources',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    %(prog)s https://example.com/page
    %(prog)s --output /var/tmp https://example.com/page
    DEBUG=page-loader* %(prog)s https://example.com
        """
    )

    parser.add_argument(
        'url',
        type=str,
        help='URL of the page to download (e.g., https://example.com)'
    )

    parser.add_argument(
        '--output', '-o',
        type=str,
        default=os.getcwd(),
        help='Output directory (default: current directory)'
    )

    parser.add_argument(
        '--timeout',
        type=float,
        default=DEFAULT_PAGE_TIMEOUT,
        help=f'Page request timeout in seconds (default: {DEFAULT_PAGE_TIMEOUT})'
    )

    parser.add_argument(
        '--resource-timeout',
        type=float,
        default=DEFAULT_RESOURCE_TIMEOUT,
        help=f'Resource request timeout in seconds (default: {DEFAULT_RESOURCE_TIMEOUT})'
    )

    parser.add_argument(
        '--concurrency', '-c',
        type=int,
        default=None,
        help='Maximum concurrent resource downloads (default: unlimited)'
    )

    parser.add_argument(
        '--user-agent',
        type=str,
        default=DEFAULT_USER_AGENT,
        help=f'User agent header (default: {DEFAULT_USER_AGENT})'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        default=None,
        help='Also write logs to this file'
    )

    parser.add_argument(
        '--debug', '-d',
        action='store_true',
        help='Enable debug output'
    )

    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Suppress output except errors'
    )

    parser.add_argument(
        '--version', '-V',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    return parser.parse_args(argv)


class ProgressObserver:
    """Shows resource downloads on a rich progress bar."""

    def __init__(self, progress, quiet: bool = False):
        self.progress = progress
        self.quiet = quiet
        self.task_id = None

    def __call__(self, event: LoadEvent) -> None:
        if event.name == RESOURCES_FOUND and event.detail.get('count'):
            self.task_id = self.progress.add_task(
                "Downloading resources", total=event.detail['count']
            )
        elif event.name in (RESOURCE_SAVED, RESOURCE_FAILED):
            if self.task_id is not None:
                self.progress.advance(self.task_id)
            if event.name == RESOURCE_FAILED and not self.quiet:
                print_warning(event.detail.get('message', f"Failed to download {event.url}"))


async def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the page loader.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    args = parse_arguments(argv)

    # Set up logging
    debug = args.debug or debug_enabled_by_env(os.environ.get('DEBUG'))
    log_level = logging.DEBUG if debug else (logging.ERROR if args.quiet else logging.WARNING)
    setup_logger(level=log_level, log_file=args.log_file)

    progress = create_progress()
    loader = PageLoader(
        page_timeout=args.timeout,
        resource_timeout=args.resource_timeout,
        concurrency=args.concurrency,
        user_agent=args.user_agent,
        on_event=ProgressObserver(progress, quiet=args.quiet)
    )

    try:
        with progress:
            result = await loader.load(args.url, args.output)
    except PageLoaderError as e:
        print_error(e.message)
        return EXIT_CODES.get(e.kind, 1)
    except Exception as e:
        print_error(f"Error: {e}")
        if debug:
            import traceback
            traceback.print_exc()
        return 1

    print(result.html_file_path)
    return 0


def run() -> None:
    """Entry point wrapper for running as module."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print_error("Interrupted by user")
        sys.exit(1)


if __name__ == '__main__':
    run()
