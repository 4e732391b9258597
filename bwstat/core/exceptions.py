#!/usr/bin/env python3
"""
bwstat Core Exceptions

Custom exception hierarchy for bwstat.
Provides specific exception types for different error categories
to enable precise error handling and informative error messages.
"""

from typing import Optional, Any


class BwStatError(Exception):
    """
    Base exception for all bwstat errors.

    All custom exceptions in bwstat inherit from this class,
    allowing for catch-all error handling when needed.
    """

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


# =============================================================================
# QUERY EXCEPTIONS
# =============================================================================

class QueryError(BwStatError):
    """
    Exception for bandwidth query errors.

    All query errors are raised before the first sample is taken and are
    never retried.
    """

    @classmethod
    def from_message(cls, message: str) -> 'QueryError':
        """Rebuild an error reported by the daemon from its rendered message."""
        exc = cls.__new__(cls)
        BwStatError.__init__(exc, message)
        return exc


class MalformedInput(QueryError):
    """Raised when a peer or protocol identifier cannot be decoded."""

    def __init__(self, field: str, value: Any, reason: str):
        super().__init__(
            f"Malformed {field}",
            details=f"{value!r}: {reason}"
        )
        self.field = field
        self.value = value
        self.reason = reason


class ConflictingScope(QueryError):
    """Raised when both a peer and a protocol filter are supplied."""

    def __init__(self, message: str = "please only specify peer OR protocol"):
        super().__init__(message)


class InvalidInterval(QueryError):
    """Raised when the polling interval is not a positive duration."""

    def __init__(self, value: Any, reason: str):
        super().__init__(
            "Invalid polling interval",
            details=f"{value!r}: {reason}"
        )
        self.value = value
        self.reason = reason


class NotOperational(QueryError):
    """Raised when the node cannot serve bandwidth metrics."""

    def __init__(self, message: str = "this command must be run in online mode. "
                                      "Try running 'bwstat --daemon' first",
                 details: Optional[Any] = None):
        super().__init__(message, details=details)


# =============================================================================
# CONFIGURATION EXCEPTIONS
# =============================================================================

class ConfigurationError(BwStatError):
    """
    Exception for configuration-related errors.

    Raised when configuration files are invalid or contain
    incorrect values.
    """
    pass


class ConfigParseError(ConfigurationError):
    """Raised when a configuration file cannot be parsed."""

    def __init__(self, file_path: str, parse_error: str):
        super().__init__(
            "Failed to parse configuration file",
            details=f"{file_path}: {parse_error}"
        )
        self.file_path = file_path
        self.parse_error = parse_error


class ConfigValidationError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(self, field: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration value for '{field}'",
            details=f"value={value}, reason={reason}"
        )
        self.field = field
        self.value = value
        self.reason = reason


# =============================================================================
# NODE EXCEPTIONS
# =============================================================================

class IdentityError(BwStatError):
    """Raised when the node identity key cannot be loaded or created."""

    def __init__(self, key_path: str, reason: str):
        super().__init__(
            "Cannot load node identity",
            details=f"{key_path}: {reason}"
        )
        self.key_path = key_path
        self.reason = reason


class ControlProtocolError(BwStatError):
    """Raised when the daemon sends a response the client cannot read."""

    def __init__(self, reason: str):
        super().__init__(
            "Invalid control socket response",
            details=reason
        )
        self.reason = reason


# Error classes that may cross the control socket by name
REMOTE_ERRORS = {
    cls.__name__: cls
    for cls in (MalformedInput, ConflictingScope, InvalidInterval, NotOperational)
}
