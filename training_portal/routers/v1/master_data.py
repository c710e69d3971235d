"""Master-data router: sections, locations, designations, programs and employees."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from training_portal.core.response import DataResponse
from training_portal.db.base import get_db
from training_portal.schemas.common import NamedItemCreate, NamedItemOut
from training_portal.schemas.employee import (
    EmployeeCreate,
    EmployeeImportRequest,
    EmployeeImportResult,
    EmployeeOut,
    ProgramCreate,
    ProgramOut,
    ProgramSectionsUpdate,
)
from training_portal.services.master_data import MasterDataService

router = APIRouter(prefix="/master-data", tags=["Master data"])


# ------------------------------------------------------------------
# Sections / locations / designations
# ------------------------------------------------------------------

@router.get("/sections", response_model=DataResponse[list[NamedItemOut]])
async def list_sections(session: AsyncSession = Depends(get_db)):
    items = await MasterDataService(session).list_sections()
    return {"data": [NamedItemOut.model_validate(s) for s in items]}


@router.post("/sections", response_model=DataResponse[NamedItemOut], status_code=status.HTTP_201_CREATED)
async def create_section(body: NamedItemCreate, session: AsyncSession = Depends(get_db)):
    section = await MasterDataService(session).create_section(body.name)
    return {"data": NamedItemOut.model_validate(section)}


@router.delete("/sections/{section_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_section(section_id: str, session: AsyncSession = Depends(get_db)):
    await MasterDataService(session).delete_section(section_id)


@router.get("/locations", response_model=DataResponse[list[NamedItemOut]])
async def list_locations(session: AsyncSession = Depends(get_db)):
    items = await MasterDataService(session).list_locations()
    return {"data": [NamedItemOut.model_validate(loc) for loc in items]}


@router.post("/locations", response_model=DataResponse[NamedItemOut], status_code=status.HTTP_201_CREATED)
async def create_location(body: NamedItemCreate, session: AsyncSession = Depends(get_db)):
    location = await MasterDataService(session).create_location(body.name)
    return {"data": NamedItemOut.model_validate(location)}


@router.delete("/locations/{location_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_location(location_id: str, session: AsyncSession = Depends(get_db)):
    await MasterDataService(session).delete_location(location_id)


@router.get("/designations", response_model=DataResponse[list[NamedItemOut]])
async def list_designations(session: AsyncSession = Depends(get_db)):
    items = await MasterDataService(session).list_designations()
    return {"data": [NamedItemOut.model_validate(d) for d in items]}


@router.post("/designations", response_model=DataResponse[NamedItemOut], status_code=status.HTTP_201_CREATED)
async def create_designation(body: NamedItemCreate, session: AsyncSession = Depends(get_db)):
    designation = await MasterDataService(session).create_designation(body.name)
    return {"data": NamedItemOut.model_validate(designation)}


@router.delete("/designations/{designation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_designation(designation_id: str, session: AsyncSession = Depends(get_db)):
    await MasterDataService(session).delete_designation(designation_id)


# ------------------------------------------------------------------
# Programs
# ------------------------------------------------------------------

@router.get("/programs", response_model=DataResponse[list[ProgramOut]])
async def list_programs(session: AsyncSession = Depends(get_db)):
    programs = await MasterDataService(session).list_programs()
    return {"data": [ProgramOut.model_validate(p) for p in programs]}


@router.post("/programs", response_model=DataResponse[ProgramOut], status_code=status.HTTP_201_CREATED)
async def create_program(body: ProgramCreate, session: AsyncSession = Depends(get_db)):
    program = await MasterDataService(session).create_program(body)
    return {"data": ProgramOut.model_validate(program)}


@router.get("/programs/{program_id}", response_model=DataResponse[ProgramOut])
async def get_program(program_id: str, session: AsyncSession = Depends(get_db)):
    program = await MasterDataService(session).get_program(program_id)
    return {"data": ProgramOut.model_validate(program)}


@router.put("/programs/{program_id}/sections", response_model=DataResponse[ProgramOut])
async def update_program_sections(
    program_id: str,
    body: ProgramSectionsUpdate,
    session: AsyncSession = Depends(get_db),
):
    """Replace the sections a program is offered to (empty list = all sections)."""
    program = await MasterDataService(session).update_program_sections(program_id, body.section_ids)
    return {"data": ProgramOut.model_validate(program)}


@router.delete("/programs/{program_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_program(program_id: str, session: AsyncSession = Depends(get_db)):
    await MasterDataService(session).delete_program(program_id)


# ------------------------------------------------------------------
# Employees
# ------------------------------------------------------------------

@router.get("/employees", response_model=DataResponse[list[EmployeeOut]])
async def search_employees(
    q: str = Query(default="", description="Matches id, name or email"),
    session: AsyncSession = Depends(get_db),
):
    employees = await MasterDataService(session).search_employees(q)
    return {"data": [EmployeeOut.model_validate(e) for e in employees]}


@router.post("/employees", response_model=DataResponse[EmployeeOut], status_code=status.HTTP_201_CREATED)
async def create_employee(body: EmployeeCreate, session: AsyncSession = Depends(get_db)):
    employee = await MasterDataService(session).create_employee(body)
    return {"data": EmployeeOut.model_validate(employee)}


@router.post("/employees/import", response_model=DataResponse[EmployeeImportResult])
async def import_employees(body: EmployeeImportRequest, session: AsyncSession = Depends(get_db)):
    """Bulk upsert from a parsed spreadsheet; invalid rows are reported, not fatal."""
    result = await MasterDataService(session).import_employees(body.rows)
    return {"data": result}


@router.delete("/employees/{emp_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_employee(emp_id: str, session: AsyncSession = Depends(get_db)):
    await MasterDataService(session).delete_employee(emp_id)
