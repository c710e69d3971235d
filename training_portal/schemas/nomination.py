"""Nomination, TNI and manager-decision schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from training_portal.domain.enums import (
    BatchStatus,
    Grade,
    ManagerApprovalStatus,
    ManagerDecision,
    NominationSource,
    NominationStatus,
)
from training_portal.schemas.common import CamelModel
from training_portal.schemas.employee import EmployeeBrief, EmployeeOut, ProgramBrief


class NominationCreate(CamelModel):
    emp_id: str = Field(min_length=1)
    program_id: str = Field(min_length=1)
    justification: str | None = None
    nominator_name: str | None = None
    nominator_email: str | None = None


class NominationUpdate(CamelModel):
    program_id: str | None = None
    justification: str | None = None


class TNINominationCreate(CamelModel):
    program_id: str = Field(min_length=1)
    justification: str | None = None


class ManagerDecisionIn(CamelModel):
    decision: ManagerDecision
    reason: str | None = None


class BatchBrief(CamelModel):
    id: str
    name: str
    status: BatchStatus


class NominationOut(CamelModel):
    id: str
    emp_id: str
    program_id: str
    batch_id: str | None = None
    status: NominationStatus
    manager_approval_status: ManagerApprovalStatus
    manager_rejection_reason: str | None = None
    source: NominationSource
    justification: str | None = None
    nominator_name: str | None = None
    nominator_email: str | None = None
    employee: EmployeeBrief | None = None
    program: ProgramBrief | None = None
    batch: BatchBrief | None = None
    created_at: datetime
    updated_at: datetime


class EmployeeAccess(CamelModel):
    emp_id: str
    exists: bool


class EmployeeProfileUpdate(CamelModel):
    name: str = Field(min_length=1)
    email: str | None = None
    grade: Grade | None = None
    section_name: str | None = None
    location: str | None = None


class EmployeeProfileOut(CamelModel):
    employee: EmployeeOut | None = None
    nominations: list[NominationOut] = Field(default_factory=list)
    sections: list[str] = Field(default_factory=list)
