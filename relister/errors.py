"""Exception hierarchy shared across the relister package."""

from __future__ import annotations


class RelisterError(Exception):
    """Base class for all relister errors."""


class ConfigurationError(RelisterError):
    """Raised when the effective configuration cannot drive the loop."""


class RemoteInvocationError(RelisterError):
    """A remote function call did not yield a usable result."""

    def __init__(self, function_ref: str, message: str) -> None:
        super().__init__(message)
        self.function_ref = function_ref


class TransportFailure(RemoteInvocationError):
    """Transport or execution-level failure; carries the raw error text."""

    def __init__(self, function_ref: str, raw: str) -> None:
        super().__init__(function_ref, f"Remote function {function_ref} errored: {raw}")
        self.raw = raw


class RemoteBusinessFailure(RemoteInvocationError):
    """The remote function ran but reported ``success: false``."""

    def __init__(self, function_ref: str) -> None:
        super().__init__(function_ref, f"Remote function {function_ref} failed.")


__all__ = [
    "ConfigurationError",
    "RelisterError",
    "RemoteBusinessFailure",
    "RemoteInvocationError",
    "TransportFailure",
]
