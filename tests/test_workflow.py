from __future__ import annotations

import pytest

from training_portal.core.exceptions import InvalidTransitionError
from training_portal.domain.enums import (
    BatchStatus,
    CohortProgramStatus,
    EnrollmentStatus,
    ManagerDecision,
    NominationStatus,
)
from training_portal.domain.workflow import apply_manager_decision, can_transition, ensure_transition


@pytest.mark.parametrize(
    "current,decision,expected_status,clears_batch",
    [
        (NominationStatus.PENDING, ManagerDecision.APPROVED, NominationStatus.APPROVED, False),
        (NominationStatus.PENDING, ManagerDecision.REJECTED, NominationStatus.REJECTED, False),
        (NominationStatus.APPROVED, ManagerDecision.REJECTED, NominationStatus.REJECTED, False),
        (NominationStatus.APPROVED, ManagerDecision.APPROVED, NominationStatus.APPROVED, False),
        (NominationStatus.BATCHED, ManagerDecision.APPROVED, NominationStatus.BATCHED, False),
        (NominationStatus.BATCHED, ManagerDecision.REJECTED, NominationStatus.PENDING, True),
    ],
)
def test_manager_decision_reconciliation(current, decision, expected_status, clears_batch):
    outcome = apply_manager_decision(current, decision)
    assert outcome.status is expected_status
    assert outcome.clear_batch is clears_batch


@pytest.mark.parametrize("current", [NominationStatus.REJECTED, NominationStatus.COMPLETED])
@pytest.mark.parametrize("decision", list(ManagerDecision))
def test_manager_decision_on_closed_nomination(current, decision):
    with pytest.raises(InvalidTransitionError):
        apply_manager_decision(current, decision)


def test_manager_decision_accepts_raw_strings():
    assert apply_manager_decision("Batched", "Rejected").clear_batch is True


def test_batch_moves_forward_only():
    assert can_transition(BatchStatus.FORMING, BatchStatus.SCHEDULED)
    assert can_transition(BatchStatus.SCHEDULED, BatchStatus.COMPLETED)
    assert not can_transition(BatchStatus.FORMING, BatchStatus.COMPLETED)
    assert not can_transition(BatchStatus.SCHEDULED, BatchStatus.FORMING)


def test_enrollment_review_branches():
    assert can_transition(EnrollmentStatus.PENDING_MANAGER, EnrollmentStatus.COMPLETED)
    assert can_transition(EnrollmentStatus.PENDING_MANAGER, EnrollmentStatus.MANAGER_DISAGREES)
    assert not can_transition(EnrollmentStatus.PENDING, EnrollmentStatus.COMPLETED)


def test_ensure_transition_message():
    with pytest.raises(InvalidTransitionError) as exc_info:
        ensure_transition(CohortProgramStatus.PENDING, CohortProgramStatus.COMPLETED)
    assert exc_info.value.status_code == 409
    assert "'Pending'" in exc_info.value.message
    assert "'Completed'" in exc_info.value.message
