"""Domain error taxonomy shared by every module.

Services raise subclasses of these; ``modules.core.exception_handler``
translates them into HTTP responses.  Each module defines its own
concrete exceptions (``OrderNotFound``, ``InvalidDeliveryPerson``...)
on top of these bases.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for every business-rule violation."""

    status_code = 400
    default_detail = "Request could not be processed."

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class AuthorizationDenied(DomainError):
    """The actor's role lacks the capability required by the operation."""

    status_code = 403
    default_detail = "Access not authorized."


class NotFound(DomainError):
    """A referenced entity does not exist."""

    status_code = 404
    default_detail = "Not found."


class ValidationFailed(DomainError):
    """Input is malformed: bad enum value, non-numeric amount, empty list."""

    status_code = 400
    default_detail = "Invalid data."


class InvalidStateTransition(DomainError):
    """The entity's current state forbids the requested change."""

    status_code = 400
    default_detail = "Operation not allowed in the current state."
