"""Network clients for the production backend."""

from .backend import LineupBackend, LineupSnapshot
from .client import Client
from .exceptions import (
    APIError,
    ClientError,
    ConflictError,
    ConnectionError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from .lineup_client import LineupClient

__all__ = [
    "Client",
    "LineupBackend",
    "LineupClient",
    "LineupSnapshot",
    "ClientError",
    "ConnectionError",
    "APIError",
    "ConflictError",
    "RateLimitError",
    "NotFoundError",
    "ValidationError",
]
