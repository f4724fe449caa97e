"""
Shared constants for the page loader.

Contains the default configuration values used by the loader and the CLI.
"""

# User agent string sent with every HTTP request
DEFAULT_USER_AGENT = "Page-Loader/1.0.0"

# Timeout for the root page request in seconds
DEFAULT_PAGE_TIMEOUT = 30

# Timeout for each resource request in seconds
DEFAULT_RESOURCE_TIMEOUT = 10

# Redirects followed before a request is considered failed
DEFAULT_MAX_REDIRECTS = 5

# No cap on concurrent resource downloads by default
DEFAULT_CONCURRENCY = None

# Name of the package logger tree
LOGGER_NAME = "page_loader"

# Name matched against the DEBUG environment variable
DEBUG_NAMESPACE = "page-loader"
