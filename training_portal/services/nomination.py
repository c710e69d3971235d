"""Nomination lifecycle: intake, manager decision, and the manager e-mail loop.

The manager decision is the one place where two status columns move
together. ``domain.workflow.apply_manager_decision`` decides the new values;
this service writes them with a compare-and-set UPDATE so a decision taken on
a stale page cannot overwrite a concurrent change.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from training_portal.core.exceptions import (
    AppException,
    ConflictError,
    NotFoundError,
    RateLimitedError,
    UnauthorizedError,
    ValidationError,
)
from training_portal.core.pagination import PaginationParams
from training_portal.core.security import (
    generate_secure_token,
    nomination_scope,
    sanitize_input,
    verify_secure_token,
)
from training_portal.domain.employee import Employee
from training_portal.domain.enums import (
    ManagerApprovalStatus,
    ManagerDecision,
    NominationSource,
    NominationStatus,
)
from training_portal.domain.nomination import Nomination
from training_portal.domain.program import Program
from training_portal.domain.workflow import apply_manager_decision
from training_portal.repositories.employee import EmployeeRepository
from training_portal.repositories.nomination import NominationRepository
from training_portal.repositories.program import ProgramRepository
from training_portal.schemas.nomination import NominationCreate, NominationUpdate
from training_portal.services import notifications
from training_portal.services.notifications import Mailer, SendResult, get_mailer
from training_portal.services.rate_limiter import check_rate_limit
from training_portal.services.sheets import SheetsClient, SheetsSyncError, get_sheets_client, nomination_row

logger = logging.getLogger(__name__)


class NominationService:
    def __init__(
        self,
        session: AsyncSession,
        mailer: Mailer | None = None,
        sheets: SheetsClient | None = None,
    ):
        self._session = session
        self._repo = NominationRepository(session)
        self._employees = EmployeeRepository(session)
        self._programs = ProgramRepository(session)
        self._mailer = mailer or get_mailer()
        self._sheets = sheets or get_sheets_client()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_nomination(self, nomination_id: str) -> Nomination:
        nomination = await self._repo.get_with_details(nomination_id)
        if not nomination:
            raise NotFoundError("Nomination", nomination_id)
        return nomination

    async def list_nominations(
        self, pagination: PaginationParams, filters: dict[str, Any] | None = None
    ) -> tuple[list[Nomination], int]:
        return await self._repo.list_with_details(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort,
            order=pagination.order,
            filters=filters,
        )

    async def get_my_nominations(self, email: str) -> list[Nomination]:
        if not email or not email.strip():
            raise ValidationError("Email is required.")
        return await self._repo.list_for_email(email)

    # ------------------------------------------------------------------
    # Intake
    # ------------------------------------------------------------------

    async def create_nomination(
        self,
        employee: Employee,
        program: Program,
        *,
        source: NominationSource,
        justification: str | None = None,
        nominator_name: str | None = None,
        nominator_email: str | None = None,
    ) -> Nomination:
        """Insert a Pending nomination, mirror it to the sheet and ask the manager."""
        if await self._repo.find_open(employee.id, program.id):
            raise ConflictError(
                f"{employee.name} already has an active nomination for '{program.name}'.",
                code="DUPLICATE_NOMINATION",
            )

        nomination = await self._repo.create(
            emp_id=employee.id,
            program_id=program.id,
            source=source,
            status=NominationStatus.PENDING,
            manager_approval_status=ManagerApprovalStatus.PENDING,
            justification=sanitize_input(justification) or None,
            nominator_name=sanitize_input(nominator_name) or None,
            nominator_email=sanitize_input(nominator_email) or None,
        )
        logger.info(
            "Nomination %s created for employee %s / program %s (%s)",
            nomination.id, employee.id, program.id, source.value,
        )

        await self._mirror_to_sheet(nomination, employee)
        await self.request_manager_approval(nomination, employee, program.name)
        return nomination

    async def submit_nomination(self, data: NominationCreate) -> Nomination:
        """Nominator-initiated nomination (source MANUAL)."""
        employee = await self._employees.get_by_id(data.emp_id)
        if not employee:
            raise NotFoundError("Employee", data.emp_id)
        program = await self._programs.get_by_id(data.program_id)
        if not program:
            raise NotFoundError("Program", data.program_id)

        nomination = await self.create_nomination(
            employee,
            program,
            source=NominationSource.MANUAL,
            justification=data.justification,
            nominator_name=data.nominator_name,
            nominator_email=data.nominator_email,
        )
        return await self.get_nomination(nomination.id)

    async def update_nomination(self, nomination_id: str, data: NominationUpdate) -> Nomination:
        nomination = await self.get_nomination(nomination_id)
        if nomination.status != NominationStatus.PENDING:
            raise ConflictError(
                "Only pending nominations can be edited.", code="NOMINATION_LOCKED"
            )

        values: dict[str, Any] = {}
        if data.program_id and data.program_id != nomination.program_id:
            program = await self._programs.get_by_id(data.program_id)
            if not program:
                raise NotFoundError("Program", data.program_id)
            if await self._repo.find_open(nomination.emp_id, program.id):
                raise ConflictError(
                    f"An active nomination for '{program.name}' already exists.",
                    code="DUPLICATE_NOMINATION",
                )
            values["program_id"] = program.id
        if data.justification is not None:
            values["justification"] = sanitize_input(data.justification) or None

        if values:
            updated = await self._repo.update_where(
                {"id": nomination_id, "status": NominationStatus.PENDING}, **values
            )
            if updated == 0:
                raise ConflictError("Nomination was changed by another request. Please reload.")
        return await self.get_nomination(nomination_id)

    # ------------------------------------------------------------------
    # Manager decision
    # ------------------------------------------------------------------

    async def submit_manager_decision(
        self,
        nomination_id: str,
        decision: ManagerDecision | str,
        reason: str | None = None,
    ) -> Nomination:
        nomination = await self._repo.get_by_id(nomination_id)
        if not nomination:
            raise NotFoundError("Nomination", nomination_id)

        decision = ManagerDecision(decision)
        current = NominationStatus(nomination.status)
        outcome = apply_manager_decision(current, decision)

        values: dict[str, Any] = {
            "status": outcome.status,
            "manager_approval_status": ManagerApprovalStatus(decision.value),
            "manager_rejection_reason": (
                sanitize_input(reason) or None if decision is ManagerDecision.REJECTED else None
            ),
        }
        if outcome.clear_batch:
            values["batch_id"] = None

        updated = await self._repo.update_where(
            {"id": nomination_id, "status": current}, **values
        )
        if updated == 0:
            raise ConflictError(
                "Nomination was changed by another request. Please reload and try again."
            )

        logger.info(
            "Manager %s nomination %s: %s -> %s%s",
            decision.value.lower(), nomination_id, current.value, outcome.status.value,
            " (released from batch)" if outcome.clear_batch else "",
        )
        return await self.get_nomination(nomination_id)

    async def submit_manager_decision_from_link(
        self,
        nomination_id: str,
        token: str | None,
        decision: ManagerDecision | str,
        reason: str | None = None,
        client_ip: str | None = None,
    ) -> Nomination:
        """Decision taken from the e-mailed link: rate limit, verify token, apply, sync sheet."""
        limit = await check_rate_limit(
            self._session, f"approval:{nomination_id}:{client_ip or 'unknown'}"
        )
        # The hit must be counted even if the token turns out to be invalid
        await self._session.commit()
        if not limit.success:
            raise RateLimitedError()

        if not verify_secure_token(token, nomination_scope(nomination_id)):
            raise UnauthorizedError("This approval link is invalid or has expired.")

        nomination = await self.submit_manager_decision(nomination_id, decision, reason)
        await self._sync_sheet_status(nomination.id, nomination.status.value)
        return nomination

    # ------------------------------------------------------------------
    # Notifications / side effects
    # ------------------------------------------------------------------

    async def request_manager_approval(
        self,
        nomination: Nomination,
        employee: Employee,
        program_name: str,
        session_dates: str | None = None,
    ) -> SendResult:
        """E-mail the employee's manager a signed approval link. Never raises."""
        if not employee.manager_email:
            logger.warning("No manager email for employee %s; approval request not sent", employee.id)
            return SendResult(False, "No manager email on file")

        try:
            token = generate_secure_token(nomination_scope(nomination.id))
        except RuntimeError as exc:
            logger.error("Approval link for nomination %s not sent: %s", nomination.id, exc)
            return SendResult(False, str(exc))

        if session_dates:
            email = notifications.session_approval_request(
                manager_email=employee.manager_email,
                manager_name=employee.manager_name,
                employee_name=employee.name,
                program_name=program_name,
                session_dates=session_dates,
                nomination_id=nomination.id,
                token=token,
            )
        else:
            email = notifications.nomination_approval_request(
                manager_email=employee.manager_email,
                manager_name=employee.manager_name,
                employee_name=employee.name,
                program_name=program_name,
                nomination_id=nomination.id,
                token=token,
                justification=nomination.justification,
            )
        return await self._mailer.deliver(email)

    async def notify_manager(self, nomination_id: str) -> SendResult:
        """Re-send the approval request for a nomination."""
        nomination = await self.get_nomination(nomination_id)
        if not nomination.employee or not nomination.employee.manager_email:
            raise ValidationError("No manager email on file for this employee.")

        result = await self.request_manager_approval(
            nomination, nomination.employee, nomination.program.name
        )
        if not result.success:
            raise AppException(
                f"Failed to send the approval email: {result.error}",
                status_code=502,
                code="MAIL_FAILED",
            )
        return result

    async def _mirror_to_sheet(self, nomination: Nomination, employee: Employee) -> None:
        if not self._sheets.enabled:
            return
        try:
            await self._sheets.append_row(
                nomination_row(nomination, employee, nomination.nominator_email)
            )
        except SheetsSyncError as exc:
            logger.error("Sheet append failed for nomination %s: %s", nomination.id, exc)

    async def _sync_sheet_status(self, nomination_id: str, status: str) -> None:
        if not self._sheets.enabled:
            return
        try:
            await self._sheets.update_status(nomination_id, status)
        except SheetsSyncError as exc:
            logger.error("Sheet status sync failed for nomination %s: %s", nomination_id, exc)
