"""Employee and master-data schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from training_portal.domain.enums import Grade, TrainingCategory
from training_portal.schemas.common import CamelModel, NamedItemOut


class EmployeeBase(CamelModel):
    name: str
    email: str | None = None
    section_name: str | None = None
    designation: str | None = None
    sub_department: str | None = None
    location: str | None = None
    mobile: str | None = None
    years_of_experience: int | None = Field(default=None, ge=0)
    manager_name: str | None = None
    manager_email: str | None = None


class EmployeeCreate(EmployeeBase):
    id: str = Field(min_length=1)
    grade: Grade


class EmployeeOut(EmployeeBase):
    id: str
    grade: Grade | None = None
    created_at: datetime
    updated_at: datetime


class EmployeeBrief(CamelModel):
    id: str
    name: str
    email: str | None = None
    grade: Grade | None = None
    section_name: str | None = None
    manager_name: str | None = None
    manager_email: str | None = None


class EmployeeImportRow(CamelModel):
    """One row of a bulk upload. Everything is optional here; rules are applied per row."""

    id: str | int | None = None
    name: str | None = None
    email: str | None = None
    grade: str | None = None
    section_name: str | None = None
    location: str | None = None
    manager_name: str | None = None
    manager_email: str | None = None


class EmployeeImportRequest(CamelModel):
    rows: list[EmployeeImportRow]


class EmployeeImportResult(CamelModel):
    count: int
    errors: list[str]


class ProgramCreate(CamelModel):
    name: str = Field(min_length=1)
    category: TrainingCategory = TrainingCategory.TECHNICAL
    description: str | None = None
    target_grades: list[Grade] = Field(default_factory=list)
    section_ids: list[str] = Field(default_factory=list)


class ProgramSectionsUpdate(CamelModel):
    section_ids: list[str]


class ProgramOut(CamelModel):
    id: str
    name: str
    category: TrainingCategory
    description: str | None = None
    target_grades: list[str] = Field(default_factory=list)
    sections: list[NamedItemOut] = Field(default_factory=list)


class ProgramBrief(CamelModel):
    id: str
    name: str
    category: TrainingCategory
