"""Cohort schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from training_portal.domain.enums import CohortMemberStatus, CohortProgramStatus, CohortStatus
from training_portal.schemas.common import CamelModel
from training_portal.schemas.employee import EmployeeBrief, ProgramBrief


class CohortCreate(CamelModel):
    name: str = Field(min_length=1)
    description: str | None = None
    program_ids: list[str] = Field(default_factory=list)


class CohortUpdate(CamelModel):
    name: str | None = None
    description: str | None = None


class CohortMembersIn(CamelModel):
    employee_ids: list[str] = Field(min_length=1)


class CohortProgramOut(CamelModel):
    id: str
    program_id: str
    seq: int
    session_id: str | None = None
    status: CohortProgramStatus
    program: ProgramBrief | None = None


class CohortMemberOut(CamelModel):
    id: str
    employee_id: str
    status: CohortMemberStatus
    joined_at: datetime
    completed_at: datetime | None = None
    employee: EmployeeBrief | None = None


class CohortOut(CamelModel):
    id: str
    name: str
    description: str | None = None
    status: CohortStatus
    programs: list[CohortProgramOut] = Field(default_factory=list)
    members: list[CohortMemberOut] = Field(default_factory=list)
    created_at: datetime


class CohortSessionCreate(CamelModel):
    trainer_name: str | None = None
    start_date: datetime
    end_date: datetime
    start_time: str | None = None
    end_time: str | None = None
    location: str | None = None
    topics: str | None = None
    feedback_creation_date: datetime | None = None


class CohortFeedbackIn(CamelModel):
    emp_id: str = Field(min_length=1)
    rating: int
    comments: str | None = None


class CohortFeedbackOut(CamelModel):
    id: str
    cohort_id: str
    emp_id: str
    rating: int
    comments: str | None = None
    created_at: datetime
