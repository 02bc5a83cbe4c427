from __future__ import annotations


class ServiceError(Exception):
    """Base for errors raised by the advisory engines."""


class ValidationError(ServiceError):
    """Raised when the caller supplied input that breaks a business rule."""


class NotFoundError(ServiceError):
    """Raised when a profile, simulation, question or user does not exist."""


class UnexpectedError(ServiceError):
    """Raised when storage or serialization fails; the message is safe to expose."""
