"""Payroll ledger state machine with transition validation."""

from __future__ import annotations

from payroll_ledger.exceptions import InvalidTransitionError
from payroll_ledger.models import LedgerStatus


class LedgerStateMachine:
    """State machine for payroll ledger status transitions.

    Allowed transitions:
    - pending → calculated
    - calculated → approved
    - calculated → rejected
    - approved → paid
    - any non-paid status → calculated (recalculation)

    PAID is terminal: it cannot be recalculated or deleted.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        LedgerStatus.PENDING.value: [LedgerStatus.CALCULATED.value],
        LedgerStatus.CALCULATED.value: [
            LedgerStatus.APPROVED.value,
            LedgerStatus.REJECTED.value,
            LedgerStatus.CALCULATED.value,
        ],
        LedgerStatus.APPROVED.value: [
            LedgerStatus.PAID.value,
            LedgerStatus.CALCULATED.value,
        ],
        LedgerStatus.REJECTED.value: [LedgerStatus.CALCULATED.value],
        LedgerStatus.PAID.value: [],  # Terminal state
    }

    # Statuses whose results can be recomputed
    RECALCULATION_ALLOWED = {
        LedgerStatus.PENDING.value,
        LedgerStatus.CALCULATED.value,
        LedgerStatus.APPROVED.value,
        LedgerStatus.REJECTED.value,
    }

    # Statuses that can never be removed
    UNDELETABLE = {LedgerStatus.PAID.value}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(
        cls, from_status: str, to_status: str, reason: str | None = None
    ) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status, reason)

    @classmethod
    def can_recalculate(cls, status: str) -> bool:
        return status in cls.RECALCULATION_ALLOWED

    @classmethod
    def can_delete(cls, status: str) -> bool:
        return status not in cls.UNDELETABLE

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])
