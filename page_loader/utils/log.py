"""
Logging utilities for the page loader.

Provides colorful CLI logging using the rich library.
"""

import fnmatch
import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn

from .constants import LOGGER_NAME, DEBUG_NAMESPACE


# Global console instance, on stderr so stdout only carries results
console = Console(stderr=True)


def setup_logger(
    level: int = logging.INFO,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Set up the package logger with rich formatting.
    
    Every logger returned by get_logger() propagates to this one.
    
    Args:
        level: Logging level (default: INFO)
        log_file: Optional file path to write logs
        
    Returns:
        Configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    
    # Clear existing handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    
    console_handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True
    )
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    console_handler.setLevel(level)
    logger.addHandler(console_handler)
    
    # File handler if specified
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        file_handler.setLevel(level)
        logger.addHandler(file_handler)
    
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger inside the package logger tree.
    
    Args:
        name: Component name (e.g. "downloader"), or None for the package logger
        
    Returns:
        Logger instance
    """
    if not name:
        return logging.getLogger(LOGGER_NAME)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def debug_enabled_by_env(value: Optional[str]) -> bool:
    """
    Check whether a DEBUG environment value enables debug output.
    
    The value is a comma or space separated list of glob patterns,
    e.g. "page-loader*" or "*".
    
    Args:
        value: Raw value of the DEBUG environment variable
        
    Returns:
        True if any pattern matches the package namespace
    """
    if not value:
        return False
    
    patterns = value.replace(",", " ").split()
    return any(fnmatch.fnmatchcase(DEBUG_NAMESPACE, p) for p in patterns)


def create_progress() -> Progress:
    """
    Create a rich progress bar instance.
    
    Returns:
        Progress instance bound to the shared console
    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True
    )


def print_status(message: str, style: str = "bold blue") -> None:
    """
    Print a styled status message.
    
    Args:
        message: Message to print
        style: Rich style string
    """
    console.print(message, style=style, markup=False, highlight=False)


def print_error(message: str) -> None:
    """Print an error message."""
    print_status(f"❌ {message}", "bold red")



def print_warning(message: str) -> None:
    """Print a warning message."""
    print_status(f"⚠️ {message}", "bold yellow")

