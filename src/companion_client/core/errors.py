"""
Structured error system for the Companion Client.

This module provides the error taxonomy shared by the transport, the login
coordinator and the expiry recovery policy.
"""

from enum import Enum
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)


class CompanionError(Exception):
    """Base exception for all Companion Client errors."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[BaseException] = None
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        return {
            "message": self.message,
            "status": self.status,
            "code": self.code,
            "details": self.details,
            "type": self.__class__.__name__
        }

    def __str__(self) -> str:
        parts = [self.message]
        if self.status:
            parts.append(f"(Status: {self.status})")
        if self.code is not None:
            parts.append(f"(Code: {self.code})")
        return " ".join(parts)


class TransportErrorKind(Enum):
    """Failure kinds surfaced by the transport."""
    NETWORK = "network"
    HTTP_STATUS = "http_status"


class TransportError(CompanionError):
    """
    A failed HTTP call.

    ``NETWORK`` errors never received a response (connection failure or
    timeout) and carry no status or code. ``HTTP_STATUS`` errors carry the
    HTTP status, the envelope ``code`` when the server sent one, and the raw
    response body.
    """

    def __init__(
        self,
        message: str,
        kind: TransportErrorKind = TransportErrorKind.HTTP_STATUS,
        body: Any = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.kind = kind
        self.body = body

    @property
    def is_network_failure(self) -> bool:
        return self.kind is TransportErrorKind.NETWORK

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["kind"] = self.kind.value
        data["body"] = self.body
        return data


class LoginError(CompanionError):
    """Base class for failures of a login attempt."""


class NoCodeError(LoginError):
    """The host environment did not supply an exchange code."""

    def __init__(self, message: str = "Failed to obtain login code", **kwargs):
        super().__init__(message, **kwargs)


class ExchangeFailedError(LoginError):
    """The credential exchange call failed at the transport level."""

    def __init__(self, transport_error: TransportError, message: Optional[str] = None):
        super().__init__(
            message or f"Credential exchange failed: {transport_error.message}",
            status=transport_error.status,
            code=transport_error.code,
            original_error=transport_error,
        )
        self.transport_error = transport_error


class MalformedResponseError(LoginError):
    """The exchange succeeded but the response lacks a credential or identity."""

    def __init__(self, message: str = "Login response is missing token or user", payload: Any = None):
        super().__init__(message)
        self.details["payload"] = payload


class RecoveryError(CompanionError):
    """A credential expired and the transparent re-login failed."""

    def __init__(self, login_error: LoginError, message: str = "Re-login after credential expiry failed"):
        super().__init__(message, original_error=login_error)
        self.login_error = login_error


class ConfigurationError(CompanionError):
    """Error related to client configuration."""

    def __init__(
        self,
        message: str = "Configuration error",
        config_field: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        if config_field:
            self.details["config_field"] = config_field


def is_credential_expired(error: TransportError, expiry_code: int = 101) -> bool:
    """
    Check whether a transport error signals an expired credential.

    Args:
        error: The failed call's error
        expiry_code: Envelope code reserved for token expiry

    Returns:
        True if the envelope code is the expiry code or the status is 401
    """
    return error.code == expiry_code or error.status == 401


def create_user_friendly_message(error: CompanionError) -> str:
    """
    Create a user-friendly error message.

    Args:
        error: The CompanionError to convert

    Returns:
        User-friendly error message
    """
    if isinstance(error, RecoveryError):
        return "Your login could not be refreshed. Please restart the application."

    elif isinstance(error, NoCodeError):
        return "Could not obtain a login code. Please try again."

    elif isinstance(error, ExchangeFailedError):
        if error.transport_error.is_network_failure:
            return "Login failed: the server could not be reached. Please check your connection."
        return f"Login failed: {error.transport_error.message}"

    elif isinstance(error, MalformedResponseError):
        return "Login failed: the server returned an unexpected response."

    elif isinstance(error, TransportError):
        if error.is_network_failure:
            return "Network error occurred. Please check your internet connection and try again."
        if error.status == 403:
            return "You don't have permission to access this resource."
        if error.status == 404:
            return "The requested resource was not found."
        if error.status and error.status >= 500:
            return "A server error occurred. Please try again later."
        return error.message

    elif isinstance(error, ConfigurationError):
        field = error.details.get("config_field")
        if field:
            return f"Configuration error in '{field}': {error.message}"
        return f"Configuration error: {error.message}"

    else:
        return f"An error occurred: {error.message}"
