"""
Contract execution exception hierarchy.

Every failure raised while a contract call is running is a trap: the host
aborts the enclosing invocation and discards all state mutations attempted
during it. Callers recover by changing their input, never by retrying the
same call.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class VMExecutionError(Exception):
    """Base exception for all contract execution failures.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the caller can succeed by resubmitting a
            corrected request
    """

    recoverable = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: Optional[bool] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if recoverable is not None:
            self.recoverable = recoverable


class InvalidArgumentError(VMExecutionError):
    """Raised when a call argument has the wrong type or length."""
    pass


# ==================== Lifecycle Errors ====================


class AlreadyInitializedError(VMExecutionError):
    """Raised when a write-once field is written a second time."""
    pass


class MissingBlueprintError(VMExecutionError):
    """Raised when the factory has no blueprint stored."""
    pass


class UnknownBlueprintError(VMExecutionError):
    """Raised when deploying a blueprint that was never uploaded."""
    pass


# ==================== Deployment Errors ====================


class ContractExistsError(VMExecutionError):
    """Raised when a deployment targets an address that already hosts a contract.

    Callers avoid this by checking the predicted address before deploying.
    """

    recoverable = True

    def __init__(self, message: str, address: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.address = address


class ContractNotFoundError(VMExecutionError):
    """Raised when invoking an address with no contract deployed."""
    pass


class UnknownFunctionError(VMExecutionError):
    """Raised when a contract does not export the requested function."""
    pass


# ==================== Authorization Errors ====================


class SignatureError(VMExecutionError):
    """Base exception for signature verification failures."""

    recoverable = True


class MalformedSignatureError(SignatureError):
    """
    Raised when signature format is invalid.

    The signature or payload itself is malformed (wrong length, wrong type,
    missing data). This must never be silently ignored as it may indicate an
    attack or data corruption.
    """
    pass


class InvalidSignatureError(SignatureError):
    """
    Raised when signature does not match the owner key.

    The signature was properly formed but cryptographic verification failed.
    """
    pass


class MissingPublicKeyError(SignatureError):
    """Raised when the account has no owner key to verify against."""

    recoverable = False


class AuthorizationError(VMExecutionError):
    """Raised by the host when an account rejects an authorization request."""

    recoverable = True

    def __init__(self, message: str, reason: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.reason = reason


# ==================== Utility Functions ====================


def is_recoverable_error(exc: Exception) -> bool:
    """Check if an exception can be recovered from by the caller.

    Args:
        exc: The exception to check

    Returns:
        True if resubmitting a corrected request can succeed
    """
    if isinstance(exc, VMExecutionError):
        return exc.recoverable
    return False


def get_error_context(exc: Exception) -> Dict[str, Any]:
    """Extract error context from an exception for logging.

    Args:
        exc: The exception to extract context from

    Returns:
        Dictionary containing error type, message, and any additional details
    """
    context: Dict[str, Any] = {
        "error_type": type(exc).__name__,
        "error_message": str(exc),
    }

    if isinstance(exc, VMExecutionError):
        context["recoverable"] = exc.recoverable
        if exc.details:
            context["details"] = exc.details

    if isinstance(exc, ContractExistsError) and exc.address:
        context["address"] = exc.address

    if isinstance(exc, AuthorizationError) and exc.reason:
        context["auth_reason"] = exc.reason

    return context
