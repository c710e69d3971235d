"""Small builders for seeding the test database. Every helper commits."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from training_portal.domain import Employee, Program, Section, Trainer
from training_portal.domain.enums import Grade, TrainingCategory
from training_portal.schemas.session import SessionCreate

START = datetime(2026, 3, 10, 4, 30, tzinfo=timezone.utc)


async def make_employee(
    session: AsyncSession,
    emp_id: str = "E100",
    *,
    name: str = "Asha Rao",
    email: str | None = None,
    grade: Grade | None = Grade.EXECUTIVE,
    section_name: str | None = "Maintenance",
    manager_name: str | None = "Vikram Shah",
    manager_email: str | None = "manager@example.com",
) -> Employee:
    employee = Employee(
        id=emp_id,
        name=name,
        email=email or f"{emp_id.lower()}@example.com",
        grade=grade,
        section_name=section_name,
        manager_name=manager_name,
        manager_email=manager_email,
    )
    session.add(employee)
    await session.commit()
    return employee


async def make_program(
    session: AsyncSession,
    name: str = "Safety Basics",
    *,
    target_grades: list[str] | None = None,
    sections: list[Section] | None = None,
) -> Program:
    program = Program(
        name=name,
        category=TrainingCategory.TECHNICAL,
        target_grades=target_grades or [],
        sections=sections or [],
    )
    session.add(program)
    await session.commit()
    return program


async def make_section(session: AsyncSession, name: str) -> Section:
    section = Section(name=name)
    session.add(section)
    await session.commit()
    return section


async def make_trainer(session: AsyncSession, name: str = "Ravi Kumar", email: str | None = "trainer@example.com") -> Trainer:
    trainer = Trainer(name=name, email=email)
    session.add(trainer)
    await session.commit()
    return trainer


def session_payload(program_name: str = "Safety Basics", start: datetime = START, **overrides) -> SessionCreate:
    data = {
        "program_name": program_name,
        "trainer_name": "Ravi Kumar",
        "start_date": start,
        "end_date": start + timedelta(hours=3),
        "location": "Plant 2",
    }
    data.update(overrides)
    return SessionCreate(**data)
