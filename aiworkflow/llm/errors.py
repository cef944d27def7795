"""Error taxonomy for the provider routing layer."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Classified cause of a provider failure."""

    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    NETWORK = "network"
    CONNECTION = "connection"
    SERVICE_UNAVAILABLE = "service_unavailable"
    SERVER_ERROR = "server_error"
    AUTHENTICATION = "authentication"
    INVALID_REQUEST = "invalid_request"
    UNKNOWN = "unknown"

    @property
    def retryable(self) -> bool:
        return self in _RETRYABLE_KINDS


_RETRYABLE_KINDS = frozenset({
    ErrorKind.RATE_LIMIT,
    ErrorKind.TIMEOUT,
    ErrorKind.NETWORK,
    ErrorKind.CONNECTION,
    ErrorKind.SERVICE_UNAVAILABLE,
    ErrorKind.SERVER_ERROR,
})

# Phrase matching for failures that carry no type information.
# Order matters: the first phrase found wins.
TRANSIENT_PHRASES: tuple[tuple[str, ErrorKind], ...] = (
    ("rate limit", ErrorKind.RATE_LIMIT),
    ("timeout", ErrorKind.TIMEOUT),
    ("network", ErrorKind.NETWORK),
    ("connection", ErrorKind.CONNECTION),
    ("service unavailable", ErrorKind.SERVICE_UNAVAILABLE),
    ("internal server error", ErrorKind.SERVER_ERROR),
)


def classify_message(message: str) -> ErrorKind:
    """Classify a free-text error message."""
    lowered = (message or "").lower()
    for phrase, kind in TRANSIENT_PHRASES:
        if phrase in lowered:
            return kind
    return ErrorKind.UNKNOWN


def kind_for_status(status_code: int | None) -> ErrorKind:
    """Classify an HTTP status code returned by a backend."""
    if status_code is None:
        return ErrorKind.UNKNOWN
    if status_code == 429:
        return ErrorKind.RATE_LIMIT
    if status_code in (408, 504):
        return ErrorKind.TIMEOUT
    if status_code in (503, 529):
        return ErrorKind.SERVICE_UNAVAILABLE
    if status_code >= 500:
        return ErrorKind.SERVER_ERROR
    if status_code in (401, 403):
        return ErrorKind.AUTHENTICATION
    if 400 <= status_code < 500:
        return ErrorKind.INVALID_REQUEST
    return ErrorKind.UNKNOWN


class RoutingError(Exception):
    """Base class for routing layer failures."""


class ConfigurationError(RoutingError, ValueError):
    """Raised when an adapter or router is built with missing configuration."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ProviderError(RoutingError):
    """Raised when a provider call fails.

    Wraps the underlying SDK or transport error; the original exception
    is available as ``__cause__``.
    """

    def __init__(
        self,
        provider: str,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        code: str | None = None,
        display_name: str | None = None,
    ):
        self.provider = provider
        self.kind = kind
        self.code = code
        self.message = message
        super().__init__(f"{display_name or provider.capitalize()} API Error: {message}")

    @property
    def retryable(self) -> bool:
        return self.kind.retryable


class BudgetExceededError(RoutingError):
    """Raised when cumulative spend has reached the monthly budget."""

    def __init__(self, used: float, budget: float):
        self.used = used
        self.budget = budget
        super().__init__(
            f"Monthly budget exceeded. Current usage: ${used:.4f}, Budget: ${_format_amount(budget)}"
        )


class NoProviderAvailableError(RoutingError):
    """Raised when no registered provider can take a request."""

    def __init__(self):
        super().__init__("No AI providers are available")


def is_retryable(error: BaseException) -> bool:
    """Whether a failed call is worth retrying on another provider."""
    if isinstance(error, ProviderError):
        return error.retryable
    return classify_message(str(error)).retryable


def _format_amount(amount: float) -> str:
    if float(amount).is_integer():
        return str(int(amount))
    return str(amount)
