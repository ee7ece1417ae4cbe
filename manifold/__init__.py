"""Python client for the Manifold Markets API.

This package provides:
- Authorization headers from an API key or JWT (optionally loaded from .env)
- A thin HTTP client over a requests session
- Lazy, typed streams over the cursor-paginated list endpoints
"""

import logging

from .auth import ManifoldAuthorization
from .client import ManifoldClient
from .errors import (
    AuthError,
    DecodeError,
    ManifoldError,
    OtherError,
    SchemaViolationError,
    TransportError,
)
from .streams import PaginatedStream, collect_until_error, take
from .types import Bet, LiteMarket, OutcomeType, ProfitCached, User

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ManifoldClient",
    "ManifoldAuthorization",
    "PaginatedStream",
    "take",
    "collect_until_error",
    # Resources
    "User",
    "ProfitCached",
    "LiteMarket",
    "OutcomeType",
    "Bet",
    # Exceptions
    "ManifoldError",
    "DecodeError",
    "TransportError",
    "SchemaViolationError",
    "OtherError",
    "AuthError",
]
