"""Unified exception hierarchy for gakwaya.

All custom exceptions inherit from GakwayaError for consistent error handling.
The CLI catches these and prints them as user-facing messages.

Dependency direction:
    This module has NO internal dependencies (leaf module).
    It may be imported by: all other gakwaya modules.
    It should NOT import from any other gakwaya modules.
"""

from __future__ import annotations


class GakwayaError(Exception):
    """Base exception for all gakwaya errors.

    All gakwaya-specific exceptions should inherit from this class.
    This enables consistent error handling at the CLI layer.
    """


class ConfigError(GakwayaError):
    """Configuration-related errors.

    Examples:
        - Invalid API URL
        - Configuration file parse errors
    """


class ValidationError(GakwayaError):
    """Local input validation errors, raised before any network call.

    Examples:
        - Empty application name
        - Image method without an image
        - Non-numeric port
    """


class ApiError(GakwayaError):
    """Backend API errors.

    Base class for all failures of a backend call.
    """


class TransportError(ApiError):
    """Raised when the request never produced an HTTP response."""


class ApiResponseError(ApiError):
    """Raised when the backend answers with a non-success status.

    The message is the backend's error text, or the per-call default
    when the body carries none.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotAuthenticatedError(ApiError):
    """Raised when an authenticated call is made without a stored token."""


class DeployError(GakwayaError):
    """Deployment workflow errors."""


class MissingApplicationIdError(DeployError):
    """Raised when the create step succeeds but returns no application id."""
