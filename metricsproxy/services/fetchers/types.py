"""
Shared Types für Fetcher Module
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Fehlerklassen eines einzelnen Upstream-Fetches"""
    TRANSPORT_ERROR = "transport_error"  # Connect, DNS, Timeout
    BAD_STATUS = "bad_status"  # Status != 200
    BODY_READ_ERROR = "body_read_error"  # Fehler beim Lesen des Bodys


@dataclass(frozen=True)
class FetchError:
    kind: ErrorKind
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class FetchOutcome:
    """
    Ergebnis eines Fetch-Vorgangs.

    Genau eines von `body` oder `error` ist gesetzt.
    """
    url: str
    body: Optional[str] = None
    error: Optional[FetchError] = None

    def __post_init__(self):
        if (self.body is None) == (self.error is None):
            raise ValueError("FetchOutcome needs exactly one of body or error")

    @classmethod
    def success(cls, url: str, body: str) -> "FetchOutcome":
        return cls(url=url, body=body)

    @classmethod
    def failure(cls, url: str, kind: ErrorKind, message: str) -> "FetchOutcome":
        return cls(url=url, error=FetchError(kind=kind, message=message))

    @property
    def ok(self) -> bool:
        return self.error is None
