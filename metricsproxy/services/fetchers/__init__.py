"""
Fetcher Package
"""

from .types import ErrorKind, FetchError, FetchOutcome
from .httpx_fetcher import HttpxFetcher
