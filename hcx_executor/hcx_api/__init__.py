"""
HCX API Integration Module

Adapter layer between the HCX Connector / HCX Cloud REST APIs and the
resource handlers.

Every handler call goes through:
- HcxSession for authentication, TLS settings and status checks
- NamedEntityResolver for name to id translation
- AsyncOperationPoller for job and task completion
"""

__version__ = "1.0.0"

from .adapter import AuthKind, HcxResponse, HcxSession
from .helpers import AsyncOperationPoller, calculate_backoff, wait_or_cancel
from .resolver import NamedEntityResolver
from .errors import (
    HcxError,
    TransportError,
    AuthError,
    NotFoundError,
    OperationFailed,
    CompositionError,
    InvalidInputError,
    OperationCancelled,
    HcxErrorCodes,
    map_hcx_error,
)

__all__ = [
    "AuthKind",
    "HcxResponse",
    "HcxSession",
    "AsyncOperationPoller",
    "calculate_backoff",
    "wait_or_cancel",
    "NamedEntityResolver",
    "HcxError",
    "TransportError",
    "AuthError",
    "NotFoundError",
    "OperationFailed",
    "CompositionError",
    "InvalidInputError",
    "OperationCancelled",
    "HcxErrorCodes",
    "map_hcx_error",
]
