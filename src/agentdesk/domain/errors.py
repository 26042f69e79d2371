"""Orchestration Errors - Exception Hierarchy and Classification.

Every exception carries an ErrorKind so raised failures and failures carried
as values (ToolFailure, ProviderFailure) share one taxonomy.

Propagation:
    ToolExecutionError: contained by the ToolDispatcher
    Authentication/RateLimit/InvalidRequest/Network/Unknown: retried by the
        FallbackExecutor
    ConfigurationError: terminal, converted to a diagnostic response by the
        orchestrator
"""

from __future__ import annotations

import asyncio

import httpx

from .domain_type import ErrorKind


class AgentDeskError(Exception):
    """Base class for all orchestration errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str = "An unspecified orchestration error occurred."):
        super().__init__(message)
        self.message = message


class ConfigurationError(AgentDeskError):
    """No credentialed provider exists for the request."""

    kind = ErrorKind.CONFIGURATION


class AuthenticationError(AgentDeskError):
    """Credential present but rejected upstream."""

    kind = ErrorKind.AUTHENTICATION


class RateLimitError(AgentDeskError):
    kind = ErrorKind.RATE_LIMIT


class InvalidRequestError(AgentDeskError):
    """Bad parameters or unknown model name."""

    kind = ErrorKind.INVALID_REQUEST


class NetworkError(AgentDeskError):
    """Transport-level failure or timeout."""

    kind = ErrorKind.NETWORK


class ToolExecutionError(AgentDeskError):
    """A tool handler failed or could not run."""

    kind = ErrorKind.TOOL_EXECUTION

    def __init__(self, tool_id: str, message: str = "Tool execution failed."):
        self.tool_id = tool_id
        super().__init__(message)


class UnknownError(AgentDeskError):
    kind = ErrorKind.UNKNOWN


def kind_for_status(status_code: int) -> ErrorKind:
    """Map an upstream HTTP status code to an ErrorKind."""
    if status_code in (401, 403):
        return ErrorKind.AUTHENTICATION
    if status_code == 429:
        return ErrorKind.RATE_LIMIT
    if status_code in (400, 404, 422):
        return ErrorKind.INVALID_REQUEST
    if status_code in (408, 502, 503, 504):
        return ErrorKind.NETWORK
    return ErrorKind.UNKNOWN


def classify_exception(exc: BaseException) -> ErrorKind:
    """Classify an arbitrary exception into the orchestration taxonomy.

    Handles our own hierarchy, pydantic-ai's ModelHTTPError (anything exposing
    an integer ``status_code``), httpx status/transport errors and timeouts.
    Everything else is UNKNOWN.
    """
    if isinstance(exc, AgentDeskError):
        return exc.kind
    if isinstance(exc, httpx.HTTPStatusError):
        return kind_for_status(exc.response.status_code)
    if isinstance(exc, (httpx.TransportError, asyncio.TimeoutError, TimeoutError, ConnectionError)):
        return ErrorKind.NETWORK
    status_code = getattr(exc, "status_code", None)
    if isinstance(status_code, int):
        return kind_for_status(status_code)
    return ErrorKind.UNKNOWN


__all__ = [
    "AgentDeskError",
    "AuthenticationError",
    "ConfigurationError",
    "InvalidRequestError",
    "NetworkError",
    "RateLimitError",
    "ToolExecutionError",
    "UnknownError",
    "classify_exception",
    "kind_for_status",
]
