"""Custom exceptions for aclguard."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ACLGuardException(Exception):
    """Base class for aclguard exceptions."""

    message: str
    http_status: int = 400
    details: dict[str, object] | None = None

    def __str__(self) -> str:  # pragma: no cover - dataclass str wrapper
        return self.message


@dataclass
class InvalidActionList(ACLGuardException, TypeError):
    """Raised when a resource is registered with a non-list action list."""

    http_status: int = 422


@dataclass
class NotFound(ACLGuardException, LookupError):
    """Raised when a mutation references something never registered."""

    http_status: int = 404


class UnknownResource(NotFound):
    """Raised by grant/revoke for a resource that was never added."""


class UnknownAction(NotFound):
    """Raised by revoke for an action the resource does not define."""


@dataclass
class AccessDenied(ACLGuardException):
    """Raised when the access control denies an action."""

    http_status: int = 403


@dataclass
class BadPolicy(ACLGuardException):
    """Raised when a policy file cannot be parsed or validated."""

    http_status: int = 422
