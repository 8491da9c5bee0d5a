"""Application-level exception types.

Domain errors raised by adapters and core helpers, enabling consistent
error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability.

    Details are logged, never returned to clients.
    """

    key_bytes: int
    max_key_bytes: int


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class InvalidKeyAppError(AppError):
    """Raised when a rate limit key is empty or oversized.

    This points at a key extraction bug, not at caller abuse, so it is
    surfaced as a server error.
    """
