"""Tests for payroll ledger state machine."""

import pytest

from payroll_ledger.exceptions import InvalidTransitionError
from payroll_ledger.services.state_machine import LedgerStateMachine


class TestLedgerStateMachine:
    """Test state machine transitions."""

    def test_valid_transitions(self):
        """Test that valid transitions are allowed."""
        assert LedgerStateMachine.can_transition("PENDING", "CALCULATED") is True
        assert LedgerStateMachine.can_transition("CALCULATED", "APPROVED") is True
        assert LedgerStateMachine.can_transition("CALCULATED", "REJECTED") is True
        assert LedgerStateMachine.can_transition("APPROVED", "PAID") is True

        # Recalculation
        assert LedgerStateMachine.can_transition("APPROVED", "CALCULATED") is True
        assert LedgerStateMachine.can_transition("REJECTED", "CALCULATED") is True

    def test_invalid_transitions(self):
        """Test that invalid transitions are blocked."""
        # Can't pay before approval
        assert LedgerStateMachine.can_transition("CALCULATED", "PAID") is False

        # Can't decide twice
        assert LedgerStateMachine.can_transition("APPROVED", "APPROVED") is False
        assert LedgerStateMachine.can_transition("REJECTED", "APPROVED") is False

        # Paid is terminal
        assert LedgerStateMachine.can_transition("PAID", "CALCULATED") is False
        assert LedgerStateMachine.can_transition("PAID", "REJECTED") is False

    def test_validate_transition_raises(self):
        """Test that validate_transition raises for invalid transitions."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            LedgerStateMachine.validate_transition("CALCULATED", "PAID")

        assert exc_info.value.from_status == "CALCULATED"
        assert exc_info.value.to_status == "PAID"
        assert exc_info.value.code == "INVALID_TRANSITION"

    def test_validate_transition_carries_reason(self):
        with pytest.raises(InvalidTransitionError, match="Only approved"):
            LedgerStateMachine.validate_transition(
                "REJECTED", "PAID", "Only approved ledgers can be marked as paid"
            )

    def test_can_recalculate(self):
        for status in ("PENDING", "CALCULATED", "APPROVED", "REJECTED"):
            assert LedgerStateMachine.can_recalculate(status) is True
        assert LedgerStateMachine.can_recalculate("PAID") is False

    def test_can_delete(self):
        assert LedgerStateMachine.can_delete("CALCULATED") is True
        assert LedgerStateMachine.can_delete("APPROVED") is True
        assert LedgerStateMachine.can_delete("PAID") is False

    def test_get_next_statuses(self):
        assert set(LedgerStateMachine.get_next_statuses("CALCULATED")) == {
            "APPROVED",
            "REJECTED",
            "CALCULATED",
        }
        assert LedgerStateMachine.get_next_statuses("PAID") == []
