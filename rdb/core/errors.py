"""
Error types raised by the submission engine.

Every error carries a ``kind`` tag so callers can branch on the category
programmatically while still rendering ``message`` to the end user.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    STALE_VERSION = "stale_version"
    BACKEND = "backend"


AUTHORIZATION_MESSAGE = "The secret was incorrect."
STALE_VERSION_MESSAGE = "The version was outdated."
INTERNAL_ERROR_MESSAGE = "There was an internal error."


class RegistryError(Exception):
    """Base class for all tagged registry errors."""

    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class ValidationError(RegistryError):
    """A submitted field is malformed or out of bounds."""

    kind = ErrorKind.VALIDATION


class AuthorizationError(RegistryError):
    """
    The supplied secret does not match the stored one.

    Deliberately worded the same whether the identity belongs to someone
    else or the owner mistyped their secret.
    """

    kind = ErrorKind.AUTHORIZATION

    def __init__(self, message: str = AUTHORIZATION_MESSAGE):
        super().__init__(message)


class StaleVersionError(RegistryError):
    kind = ErrorKind.STALE_VERSION

    def __init__(self, message: str = STALE_VERSION_MESSAGE):
        super().__init__(message)


class BackendError(RegistryError):
    """
    The store could not complete an operation for infrastructure reasons.

    ``message`` is meant for operators and is never shown to callers.
    """

    kind = ErrorKind.BACKEND
