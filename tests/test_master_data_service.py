from __future__ import annotations

import threading

import pytest

from training_portal.core.exceptions import ConflictError, NotFoundError, ValidationError
from training_portal.domain.enums import Grade, UserRole
from training_portal.repositories.employee import EmployeeRepository
from training_portal.repositories.trainer import UserRepository
from training_portal.schemas.employee import EmployeeCreate, EmployeeImportRow, ProgramCreate
from training_portal.schemas.trainer import TrainerCreate
from training_portal.services.master_data import MasterDataService
from training_portal.services import trainer as trainer_module
from training_portal.services.trainer import TrainerService, hash_password, verify_password


@pytest.fixture
def service(session):
    return MasterDataService(session)


async def test_named_lookups(service):
    section = await service.create_section("  Maintenance ")
    assert section.name == "Maintenance"
    with pytest.raises(ConflictError):
        await service.create_section("Maintenance")
    with pytest.raises(ValidationError):
        await service.create_location("<b></b>")

    await service.create_designation("Engineer")
    assert [d.name for d in await service.list_designations()] == ["Engineer"]

    await service.delete_section(section.id)
    assert await service.list_sections() == []
    with pytest.raises(NotFoundError):
        await service.delete_section(section.id)


async def test_program_with_sections(service):
    first = await service.create_section("Maintenance")
    second = await service.create_section("Operations")

    program = await service.create_program(
        ProgramCreate(name="Safety Basics", target_grades=[Grade.WORKMAN], section_ids=[first.id])
    )
    assert program.target_grades == ["WORKMAN"]
    assert [s.name for s in program.sections] == ["Maintenance"]

    with pytest.raises(ConflictError):
        await service.create_program(ProgramCreate(name="Safety Basics"))
    with pytest.raises(NotFoundError):
        await service.create_program(ProgramCreate(name="First Aid", section_ids=["missing"]))

    program = await service.update_program_sections(program.id, [second.id])
    assert [s.name for s in program.sections] == ["Operations"]


async def test_create_and_search_employees(service):
    await service.create_employee(EmployeeCreate(id="E1", name="Asha Rao", email="asha@example.com", grade=Grade.EXECUTIVE))
    await service.create_employee(EmployeeCreate(id="E2", name="Bala Iyer", email="bala@example.com", grade=Grade.WORKMAN))

    with pytest.raises(ConflictError):
        await service.create_employee(EmployeeCreate(id="E1", name="Dup", grade=Grade.WORKMAN))

    assert [e.id for e in await service.search_employees("asha")] == ["E1"]
    assert [e.id for e in await service.search_employees("EXAMPLE.COM")] == ["E1", "E2"]
    assert await service.search_employees("   ") == []


async def test_import_reports_bad_rows(session, service):
    result = await service.import_employees(
        [
            EmployeeImportRow(id=101, name="Asha Rao", email="asha@example.com", grade="executive"),
            EmployeeImportRow(id="102", name="No Grade", email="ng@example.com"),
            EmployeeImportRow(id="103", name="Bad Grade", email="bg@example.com", grade="Manager"),
            EmployeeImportRow(id="104", name="Bala Iyer", email="bala@example.com", grade="WORKMAN"),
        ]
    )

    assert result.count == 2
    assert result.errors == [
        "Row 2: Missing required fields (id, name, email, grade)",
        "Row 3: Invalid grade (Must be EXECUTIVE or WORKMAN)",
    ]
    employee = await EmployeeRepository(session).get_by_id("101")
    assert employee.grade is Grade.EXECUTIVE


async def test_import_updates_existing(session, service):
    await service.import_employees([EmployeeImportRow(id="E1", name="Old", email="old@example.com", grade="WORKMAN")])
    result = await service.import_employees(
        [EmployeeImportRow(id="E1", name="New", email="new@example.com", grade="WORKMAN", manager_email="m@example.com")]
    )
    assert result.count == 1
    employee = await EmployeeRepository(session).get_by_id("E1")
    assert employee.name == "New"
    assert employee.manager_email == "m@example.com"


def test_password_hashing():
    hashed = hash_password("s3cret")
    assert hashed.startswith("$2b$12$")
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("s3cret", None)


async def test_trainer_with_email_gets_login(session, mailer):
    service = TrainerService(session, mailer=mailer)

    trainer = await service.add_trainer(TrainerCreate(name="Ravi Kumar", email="Trainer@Example.com"))

    assert trainer.email == "trainer@example.com"
    user = await UserRepository(session).get_by_email("trainer@example.com")
    assert user.role is UserRole.TRAINER
    assert trainer.user_id == user.id
    [email] = mailer.sent
    assert email.to == "trainer@example.com"
    password = email.html.split("Temporary password:</strong> ")[1].split("<")[0]
    assert verify_password(password, user.password_hash)


async def test_trainer_without_email(session, mailer):
    service = TrainerService(session, mailer=mailer)
    trainer = await service.add_trainer(TrainerCreate(name="Guest Faculty"))
    assert trainer.user_id is None
    assert mailer.sent == []

    with pytest.raises(ConflictError):
        await service.add_trainer(TrainerCreate(name="Guest Faculty"))

    await service.delete_trainer(trainer.id)
    assert await service.list_trainers() == []


async def test_trainer_password_hashed_outside_event_loop(session, mailer, monkeypatch):
    loop_thread = threading.get_ident()
    hashed_on = []

    def recording_hash(password):
        hashed_on.append(threading.get_ident())
        return hash_password(password)

    monkeypatch.setattr(trainer_module, "hash_password", recording_hash)

    await TrainerService(session, mailer=mailer).add_trainer(
        TrainerCreate(name="Ravi Kumar", email="trainer@example.com")
    )

    assert len(hashed_on) == 1
    assert hashed_on[0] != loop_thread
