"""Core models and exceptions."""

from aidflow_smoke.core.exceptions import (
    InteractionError,
    PollTimeoutError,
    PreconditionError,
    SelectionNotFoundError,
    ServerNotReadyError,
    SmokeError,
)
from aidflow_smoke.core.models import NetworkErrorRecord, SmokeReport

__all__ = [
    # Exceptions
    "SmokeError",
    "PollTimeoutError",
    "ServerNotReadyError",
    "PreconditionError",
    "InteractionError",
    "SelectionNotFoundError",
    # Models
    "NetworkErrorRecord",
    "SmokeReport",
]
