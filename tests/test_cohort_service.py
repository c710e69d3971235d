from __future__ import annotations

import pytest
from sqlalchemy import update

from training_portal.core.exceptions import ConflictError, NotFoundError, ValidationError
from training_portal.domain.enums import (
    CohortMemberStatus,
    CohortProgramStatus,
    CohortStatus,
    ManagerApprovalStatus,
    NominationSource,
    NominationStatus,
)
from training_portal.domain.nomination import Nomination
from training_portal.schemas.cohort import CohortCreate, CohortFeedbackIn, CohortSessionCreate, CohortUpdate
from training_portal.schemas.nomination import NominationCreate
from training_portal.services.cohort import CohortService
from training_portal.services.nomination import NominationService
from tests.factories import START, make_employee, make_program


@pytest.fixture
def service(session, mailer):
    return CohortService(session, mailer=mailer)


def _session_data(**overrides):
    data = {"trainer_name": "Ravi Kumar", "start_date": START, "end_date": START, "location": "Plant 2"}
    data.update(overrides)
    return CohortSessionCreate(**data)


async def _cohort(session, service, members=("E1", "E2")):
    first = await make_program(session, "Safety Basics")
    second = await make_program(session, "First Aid")
    for emp_id in members:
        await make_employee(session, emp_id, name=f"Employee {emp_id}")
    cohort = await service.create_cohort(
        CohortCreate(name="Supervisors 2026", program_ids=[first.id, second.id])
    )
    if members:
        cohort = await service.add_members(cohort.id, list(members))
    return cohort


async def test_create_cohort_orders_programs(session, service):
    cohort = await _cohort(session, service, members=())

    assert cohort.status is CohortStatus.DRAFT
    assert [(p.seq, p.program.name) for p in cohort.programs] == [(1, "Safety Basics"), (2, "First Aid")]
    assert all(p.status is CohortProgramStatus.PENDING for p in cohort.programs)


async def test_create_cohort_with_unknown_program(service):
    with pytest.raises(NotFoundError):
        await service.create_cohort(CohortCreate(name="X", program_ids=["missing"]))


async def test_update_cohort(session, service):
    cohort = await _cohort(session, service, members=())
    updated = await service.update_cohort(cohort.id, CohortUpdate(description="Front-line leads"))
    assert updated.name == "Supervisors 2026"
    assert updated.description == "Front-line leads"


async def test_members(session, service):
    cohort = await _cohort(session, service)
    assert {m.employee_id for m in cohort.members} == {"E1", "E2"}

    with pytest.raises(ConflictError, match="All employees are already in this cohort."):
        await service.add_members(cohort.id, ["E1", "E2"])
    with pytest.raises(NotFoundError):
        await service.add_members(cohort.id, ["ghost"])

    cohort = await service.remove_member(cohort.id, "E2")
    assert [m.employee_id for m in cohort.members] == ["E1"]


async def test_schedule_session_seats_members(session, service, mailer):
    cohort = await _cohort(session, service)
    first_program = cohort.programs[0]
    waiting = await NominationService(session, mailer=mailer).submit_nomination(
        NominationCreate(emp_id="E1", program_id=first_program.program_id)
    )

    training_session = await service.schedule_cohort_session(first_program.id, _session_data())

    by_emp = {n.emp_id: n for n in training_session.nominations}
    assert set(by_emp) == {"E1", "E2"}
    assert by_emp["E1"].id == waiting.id
    assert by_emp["E2"].source is NominationSource.COHORT
    assert all(n.status is NominationStatus.BATCHED for n in by_emp.values())
    assert all(n.manager_approval_status is ManagerApprovalStatus.APPROVED for n in by_emp.values())

    cohort = await service.get_cohort(cohort.id)
    assert cohort.status is CohortStatus.ACTIVE
    assert cohort.programs[0].status is CohortProgramStatus.IN_PROGRESS
    assert cohort.programs[0].session_id == training_session.id

    with pytest.raises(ConflictError, match="A session is already scheduled for this program."):
        await service.schedule_cohort_session(first_program.id, _session_data())


async def test_schedule_session_when_waiting_nomination_changes_underneath(
    session, service, mailer, monkeypatch
):
    cohort = await _cohort(session, service)
    first_program = cohort.programs[0]
    waiting = await NominationService(session, mailer=mailer).submit_nomination(
        NominationCreate(emp_id="E1", program_id=first_program.program_id)
    )
    list_unbatched = service._nominations.list_unbatched_for_employees

    async def list_then_reject(program_id, emp_ids):
        found = await list_unbatched(program_id, emp_ids)
        await session.execute(
            update(Nomination)
            .where(Nomination.id == waiting.id)
            .values(status=NominationStatus.REJECTED)
            .execution_options(synchronize_session=False)
        )
        return found

    monkeypatch.setattr(service._nominations, "list_unbatched_for_employees", list_then_reject)

    with pytest.raises(ConflictError, match="was changed by another request"):
        await service.schedule_cohort_session(first_program.id, _session_data())


async def test_completing_all_programs_completes_cohort(session, service):
    cohort = await _cohort(session, service)
    first, second = (p.id for p in cohort.programs)

    with pytest.raises(ConflictError):
        # Pending programs must be scheduled first
        await service.mark_cohort_program_complete(first)

    await service.schedule_cohort_session(first, _session_data())
    await service.schedule_cohort_session(second, _session_data(location="Plant 3"))

    cohort = await service.mark_cohort_program_complete(first)
    assert cohort.status is CohortStatus.ACTIVE

    cohort = await service.mark_cohort_program_complete(second)
    assert cohort.status is CohortStatus.COMPLETED
    assert all(m.status is CohortMemberStatus.COMPLETED for m in cohort.members)
    assert all(m.completed_at is not None for m in cohort.members)


async def test_only_draft_cohorts_can_be_deleted(session, service):
    cohort = await _cohort(session, service)
    await service.schedule_cohort_session(cohort.programs[0].id, _session_data())

    with pytest.raises(ConflictError, match="Can only delete cohorts in Draft status."):
        await service.delete_cohort(cohort.id)

    draft = await service.create_cohort(CohortCreate(name="Later"))
    await service.delete_cohort(draft.id)
    with pytest.raises(NotFoundError):
        await service.get_cohort(draft.id)


async def test_cohort_feedback_upserts(session, service):
    cohort = await _cohort(session, service)

    first = await service.submit_cohort_feedback(cohort.id, CohortFeedbackIn(emp_id="E1", rating=3))
    second = await service.submit_cohort_feedback(
        cohort.id, CohortFeedbackIn(emp_id="E1", rating=5, comments="Much better")
    )
    assert second.id == first.id
    assert second.rating == 5
    assert second.comments == "Much better"


@pytest.mark.parametrize("rating", [0, 6])
async def test_cohort_feedback_rating_bounds(session, service, rating):
    cohort = await _cohort(session, service)
    with pytest.raises(ValidationError, match="Rating must be between 1 and 5."):
        await service.submit_cohort_feedback(cohort.id, CohortFeedbackIn(emp_id="E1", rating=rating))


async def test_cohort_feedback_from_non_member(session, service):
    cohort = await _cohort(session, service)
    with pytest.raises(NotFoundError):
        await service.submit_cohort_feedback(cohort.id, CohortFeedbackIn(emp_id="E9", rating=4))
