"""Status transition tables and the manager-decision reconciliation rule.

Pure functions over the enums in ``domain.enums`` so they can be reused by
every service that moves a status column and tested without a database.
"""

from __future__ import annotations

from typing import Mapping, NamedTuple

from training_portal.core.exceptions import InvalidTransitionError
from training_portal.domain.enums import (
    BatchStatus,
    CohortProgramStatus,
    CohortStatus,
    EnrollmentStatus,
    ManagerDecision,
    NominationStatus,
)

NOMINATION_TRANSITIONS: Mapping[NominationStatus, frozenset[NominationStatus]] = {
    NominationStatus.PENDING: frozenset(
        {NominationStatus.APPROVED, NominationStatus.REJECTED, NominationStatus.BATCHED}
    ),
    NominationStatus.APPROVED: frozenset(
        {NominationStatus.REJECTED, NominationStatus.BATCHED}
    ),
    NominationStatus.BATCHED: frozenset(
        {NominationStatus.PENDING, NominationStatus.COMPLETED}
    ),
    NominationStatus.REJECTED: frozenset(),
    NominationStatus.COMPLETED: frozenset(),
}

BATCH_TRANSITIONS: Mapping[BatchStatus, frozenset[BatchStatus]] = {
    BatchStatus.FORMING: frozenset({BatchStatus.SCHEDULED}),
    BatchStatus.SCHEDULED: frozenset({BatchStatus.COMPLETED}),
    BatchStatus.COMPLETED: frozenset(),
}

ENROLLMENT_TRANSITIONS: Mapping[EnrollmentStatus, frozenset[EnrollmentStatus]] = {
    EnrollmentStatus.PENDING: frozenset({EnrollmentStatus.PENDING_MANAGER}),
    EnrollmentStatus.PENDING_MANAGER: frozenset(
        {EnrollmentStatus.COMPLETED, EnrollmentStatus.MANAGER_DISAGREES}
    ),
    EnrollmentStatus.COMPLETED: frozenset(),
    EnrollmentStatus.MANAGER_DISAGREES: frozenset(),
}

COHORT_TRANSITIONS: Mapping[CohortStatus, frozenset[CohortStatus]] = {
    CohortStatus.DRAFT: frozenset({CohortStatus.ACTIVE}),
    CohortStatus.ACTIVE: frozenset({CohortStatus.COMPLETED}),
    CohortStatus.COMPLETED: frozenset(),
}

COHORT_PROGRAM_TRANSITIONS: Mapping[CohortProgramStatus, frozenset[CohortProgramStatus]] = {
    CohortProgramStatus.PENDING: frozenset({CohortProgramStatus.IN_PROGRESS}),
    CohortProgramStatus.IN_PROGRESS: frozenset({CohortProgramStatus.COMPLETED}),
    CohortProgramStatus.COMPLETED: frozenset(),
}

_TABLES = {
    NominationStatus: ("Nomination", NOMINATION_TRANSITIONS),
    BatchStatus: ("Batch", BATCH_TRANSITIONS),
    EnrollmentStatus: ("Enrollment", ENROLLMENT_TRANSITIONS),
    CohortStatus: ("Cohort", COHORT_TRANSITIONS),
    CohortProgramStatus: ("Cohort program", COHORT_PROGRAM_TRANSITIONS),
}


def can_transition(current, target) -> bool:
    _, table = _TABLES[type(target)]
    current = type(target)(current)
    return target in table.get(current, frozenset())


def ensure_transition(current, target) -> None:
    """Raise InvalidTransitionError unless *current* → *target* is allowed."""
    entity, _ = _TABLES[type(target)]
    if not can_transition(current, target):
        raise InvalidTransitionError(entity, str(getattr(current, "value", current)), target.value)


class DecisionOutcome(NamedTuple):
    status: NominationStatus
    clear_batch: bool


def apply_manager_decision(
    current: NominationStatus | str, decision: ManagerDecision | str
) -> DecisionOutcome:
    """Map (current status, manager decision) to the nomination's new status.

    A batched nomination keeps its seat on approval; on rejection it goes back
    to the unbatched pool as Pending. Unbatched nominations take the decision
    as their status.
    """
    current = NominationStatus(current)
    decision = ManagerDecision(decision)

    if current in (NominationStatus.PENDING, NominationStatus.APPROVED):
        return DecisionOutcome(NominationStatus(decision.value), clear_batch=False)
    if current is NominationStatus.BATCHED:
        if decision is ManagerDecision.APPROVED:
            return DecisionOutcome(NominationStatus.BATCHED, clear_batch=False)
        return DecisionOutcome(NominationStatus.PENDING, clear_batch=True)
    raise InvalidTransitionError("Nomination", current.value, decision.value)
