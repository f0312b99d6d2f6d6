"""
core.domain.exceptions — Domain-specific exception hierarchy.

These exceptions represent business-rule violations inside service layers.
They are deliberately **not** DRF exceptions so that the domain layer stays
framework-agnostic.  The global DRF exception handler in
``core.domain.exception_handler`` maps them to HTTP responses.

Mapping cheatsheet
------------------
┌───────────────────────┬──────┬──────────────────────────┐
│ Domain Exception      │ HTTP │ ``code``                 │
├───────────────────────┼──────┼──────────────────────────┤
│ DomainError           │ 400  │ domain_error             │
│ ValidationFailed      │ 400  │ validation_failed        │
│ NotConnected          │ 400  │ units_not_connected      │
│ SameUnit              │ 400  │ same_unit                │
│ PermissionDenied      │ 403  │ permission_denied        │
│ NotFound              │ 404  │ not_found                │
│ Conflict              │ 409  │ conflict                 │
│ PendingTransferExists │ 409  │ transfer_pending         │
│ StaleState            │ 409  │ stale_state              │
│ InvalidTransition     │ 409  │ invalid_transition       │
│ TerminalState         │ 409  │ terminal_state           │
└───────────────────────┴──────┴──────────────────────────┘

Every exception exposes ``code`` (stable machine-readable string) and
``extra`` (a dict merged into the error response body) so a client can
render a specific message such as "this transfer was already accepted by
X at Y" instead of a generic failure.

Recommended usage inside a service::

    from core.domain.exceptions import StaleState

    if transfer.status != TransferStatus.PENDING:
        raise StaleState(
            transfer_id=transfer.pk,
            status=transfer.status,
            resolved_by=transfer.resolved_by,
            resolved_at=transfer.resolved_at,
        )
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """
    Base class for all domain / business-rule errors.

    Catch this at the view boundary and convert to a 400 Bad Request.
    """

    code = "domain_error"

    def __init__(self, message: str = "A business rule was violated.") -> None:
        self.message = message
        super().__init__(self.message)

    @property
    def extra(self) -> dict[str, Any]:
        """Additional response-body fields describing the failure."""
        return {}


class ValidationFailed(DomainError):
    """
    Malformed or incomplete input detected by a service.

    ``field`` names the offending input so the client can highlight it.
    Maps to HTTP 400.
    """

    code = "validation_failed"

    def __init__(self, message: str = "Invalid input.", *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field

    @property
    def extra(self) -> dict[str, Any]:
        return {"field": self.field} if self.field else {}


class NotConnected(DomainError):
    """
    The source and destination departments have no active connection
    that permits exchanging complaints.

    Maps to HTTP 400.
    """

    code = "units_not_connected"

    def __init__(self, message: str = "The selected departments are not connected for transfers.") -> None:
        super().__init__(message)


class SameUnit(DomainError):
    """
    The requested destination is the unit that already holds custody.

    Maps to HTTP 400.
    """

    code = "same_unit"

    def __init__(self, message: str = "The complaint is already held by the selected unit.") -> None:
        super().__init__(message)


class PermissionDenied(DomainError):
    """
    The caller's capabilities do not include the requested operation.

    Maps to HTTP 403.
    """

    code = "permission_denied"

    def __init__(self, message: str = "You do not have permission to perform this action.") -> None:
        super().__init__(message)


class NotFound(DomainError):
    """
    The requested resource does not exist (or is not visible to the
    requesting user given their organisational scope).

    Maps to HTTP 404.
    """

    code = "not_found"

    def __init__(self, message: str = "The requested resource was not found.") -> None:
        super().__init__(message)


class Conflict(DomainError):
    """
    The operation conflicts with the current state of the resource.

    Maps to HTTP 409.
    """

    code = "conflict"

    def __init__(self, message: str = "The operation conflicts with the current state.") -> None:
        super().__init__(message)


class PendingTransferExists(Conflict):
    """
    A transfer is already awaiting a decision for this complaint.

    Raised when a second transfer is initiated, and when the custodian
    tries to change the status while a transfer is outstanding.  The
    client should re-fetch the role context.
    """

    code = "transfer_pending"

    def __init__(
        self,
        message: str = "A transfer is already pending for this complaint.",
        *,
        transfer_id: int | None = None,
    ) -> None:
        super().__init__(message)
        self.transfer_id = transfer_id

    @property
    def extra(self) -> dict[str, Any]:
        return {"transfer_id": self.transfer_id} if self.transfer_id else {}


class StaleState(Conflict):
    """
    The transfer was already decided, typically by a concurrent actor.

    Kept distinct from ``PendingTransferExists`` so the UI can say
    "already decided" rather than "try again".
    """

    code = "stale_state"

    def __init__(
        self,
        message: str | None = None,
        *,
        transfer_id: int | None = None,
        status: str | None = None,
        resolved_by: Any = None,
        resolved_at: Any = None,
    ) -> None:
        if message is None:
            message = "This transfer has already been decided"
            if status:
                message += f" ({status})"
            if resolved_by is not None:
                message += f" by {resolved_by}"
            if resolved_at is not None:
                message += f" at {resolved_at.isoformat()}"
            message += "."
        super().__init__(message)
        self.transfer_id = transfer_id
        self.status = status
        self.resolved_by = resolved_by
        self.resolved_at = resolved_at

    @property
    def extra(self) -> dict[str, Any]:
        return {
            "transfer_id": self.transfer_id,
            "status": self.status,
            "resolved_by": str(self.resolved_by) if self.resolved_by is not None else None,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
        }


class InvalidTransition(Conflict):
    """
    A state-machine transition that is not allowed from the current status.

    Inherits from ``Conflict`` because an invalid transition IS a conflict
    with the resource's current state.  Maps to HTTP 409.

    Example::

        raise InvalidTransition(
            current="in_progress",
            target="open",
            reason="Complaints only move forward.",
        )
    """

    code = "invalid_transition"

    def __init__(
        self,
        message: str | None = None,
        *,
        current: str | None = None,
        target: str | None = None,
        reason: str | None = None,
    ) -> None:
        if message is None:
            parts = ["Invalid state transition"]
            if current and target:
                parts.append(f"from '{current}' to '{target}'")
            message = " ".join(parts) + "."
            if reason:
                message += f" {reason}"
        super().__init__(message)
        self.current = current
        self.target = target
        self.reason = reason

    @property
    def extra(self) -> dict[str, Any]:
        return {"current": self.current, "target": self.target}


class TerminalState(InvalidTransition):
    """
    The complaint is in a terminal status (resolved or rejected) and
    cannot transition any further.
    """

    code = "terminal_state"

    def __init__(self, message: str | None = None, *, current: str | None = None, target: str | None = None) -> None:
        if message is None:
            message = f"Complaint is already '{current}' and cannot change status."
        super().__init__(message, current=current, target=target)
