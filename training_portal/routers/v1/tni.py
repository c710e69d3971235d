"""TNI router: the employee-facing nomination form, keyed by employee id."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from training_portal.core.response import DataResponse
from training_portal.db.base import get_db
from training_portal.schemas.employee import EmployeeOut, ProgramOut
from training_portal.schemas.nomination import (
    EmployeeAccess,
    EmployeeProfileOut,
    EmployeeProfileUpdate,
    NominationOut,
    TNINominationCreate,
)
from training_portal.services.notifications import Mailer, get_mailer
from training_portal.services.tni import TNIService

router = APIRouter(prefix="/tni", tags=["TNI"])


@router.get("/employees/{emp_id}/access", response_model=DataResponse[EmployeeAccess])
async def check_access(emp_id: str, session: AsyncSession = Depends(get_db)):
    """Whether *emp_id* is in the employee register (unknown ids go to the profile form)."""
    return {"data": await TNIService(session).check_employee_access(emp_id)}


@router.get("/employees/{emp_id}/profile", response_model=DataResponse[EmployeeProfileOut])
async def get_profile(emp_id: str, session: AsyncSession = Depends(get_db)):
    return {"data": await TNIService(session).get_employee_profile(emp_id)}


@router.put("/employees/{emp_id}/profile", response_model=DataResponse[EmployeeOut])
async def update_profile(
    emp_id: str,
    body: EmployeeProfileUpdate,
    session: AsyncSession = Depends(get_db),
):
    employee = await TNIService(session).update_employee_profile(emp_id, body)
    return {"data": EmployeeOut.model_validate(employee)}


@router.get("/employees/{emp_id}/programs", response_model=DataResponse[list[ProgramOut]])
async def available_programs(emp_id: str, session: AsyncSession = Depends(get_db)):
    programs = await TNIService(session).get_available_programs(emp_id)
    return {"data": [ProgramOut.model_validate(p) for p in programs]}


@router.post(
    "/employees/{emp_id}/nominations",
    response_model=DataResponse[NominationOut],
    status_code=status.HTTP_201_CREATED,
)
async def submit_tni_nomination(
    emp_id: str,
    body: TNINominationCreate,
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    nomination = await TNIService(session, mailer=mailer).submit_tni_nomination(
        emp_id, body.program_id, body.justification
    )
    return {"data": NominationOut.model_validate(nomination)}
