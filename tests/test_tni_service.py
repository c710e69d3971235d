from __future__ import annotations

import pytest

from training_portal.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from training_portal.domain.enums import Grade, NominationSource, NominationStatus
from training_portal.schemas.nomination import EmployeeProfileUpdate
from training_portal.services.tni import TNIService
from tests.factories import make_employee, make_program, make_section


@pytest.fixture
def service(session, mailer):
    return TNIService(session, mailer=mailer)


async def test_access_check(session, service):
    await make_employee(session, "E1")
    assert (await service.check_employee_access(" E1 ")).exists
    assert not (await service.check_employee_access("E2")).exists
    with pytest.raises(ValidationError):
        await service.check_employee_access("  ")


async def test_available_programs_follow_grade_and_section(session, service):
    maintenance = await make_section(session, "Maintenance")
    operations = await make_section(session, "Operations")
    await make_employee(session, "E1", grade=Grade.EXECUTIVE, section_name="Maintenance")
    await make_program(session, "Open To All")
    await make_program(session, "Executives Only", target_grades=["EXECUTIVE"])
    await make_program(session, "Workmen Only", target_grades=["WORKMAN"])
    await make_program(session, "Maintenance Only", sections=[maintenance])
    await make_program(session, "Operations Only", sections=[operations])

    programs = await service.get_available_programs("E1")

    assert sorted(p.name for p in programs) == ["Executives Only", "Maintenance Only", "Open To All"]


async def test_available_programs_for_unknown_employee(service):
    with pytest.raises(NotFoundError):
        await service.get_available_programs("ghost")


async def test_tni_nomination(session, service, mailer):
    await make_employee(session, "E1")
    program = await make_program(session)

    nomination = await service.submit_tni_nomination("E1", program.id, "Asked for it")

    assert nomination.source is NominationSource.TNI
    assert nomination.status is NominationStatus.PENDING
    assert len(mailer.to("manager@example.com")) == 1


async def test_tni_nomination_outside_target(session, service):
    await make_employee(session, "E1", grade=Grade.EXECUTIVE)
    program = await make_program(session, target_grades=["WORKMAN"])
    with pytest.raises(ForbiddenError):
        await service.submit_tni_nomination("E1", program.id)


async def test_profile_lists_this_years_nominations(session, service):
    await make_section(session, "Maintenance")
    await make_employee(session, "E1")
    program = await make_program(session)
    await service.submit_tni_nomination("E1", program.id)

    profile = await service.get_employee_profile("E1")

    assert profile.employee.id == "E1"
    assert [n.program_id for n in profile.nominations] == [program.id]
    assert profile.sections == ["Maintenance"]


async def test_profile_for_new_employee(service):
    profile = await service.get_employee_profile("NEW1")
    assert profile.employee is None
    assert profile.nominations == []


async def test_update_profile_registers_employee(service):
    employee = await service.update_employee_profile(
        "NEW1", EmployeeProfileUpdate(name="New Joiner", grade=Grade.WORKMAN, section_name="Operations")
    )
    assert employee.id == "NEW1"
    assert employee.grade is Grade.WORKMAN
    assert (await service.check_employee_access("NEW1")).exists
