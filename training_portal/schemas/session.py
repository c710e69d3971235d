"""Training session, batch and enrollment schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, model_validator

from training_portal.core.dates import ensure_utc
from training_portal.domain.enums import BatchStatus, EnrollmentStatus, Grade
from training_portal.schemas.common import CamelModel
from training_portal.schemas.nomination import NominationOut


class SessionCreate(CamelModel):
    program_name: str = Field(min_length=1)
    trainer_name: str | None = None
    start_date: datetime
    end_date: datetime
    start_time: str | None = None
    end_time: str | None = None
    location: str | None = None
    topics: str | None = None
    feedback_creation_date: datetime | None = None
    template_type: str = "Technical"
    send_feedback_automatically: bool = False

    @model_validator(mode="after")
    def _check_dates(self) -> "SessionCreate":
        if ensure_utc(self.end_date) < ensure_utc(self.start_date):
            raise ValueError("endDate must not be before startDate")
        return self


class BatchOut(CamelModel):
    id: str
    name: str
    program_id: str
    status: BatchStatus
    created_at: datetime


class EnrollmentOut(CamelModel):
    id: str
    session_id: str
    employee_name: str
    employee_email: str
    emp_id: str | None = None
    manager_name: str | None = None
    manager_email: str | None = None
    pre_training_rating: int = 0
    post_training_rating: int = 0
    training_rating: int = 0
    content_rating: int = 0
    trainer_rating: int = 0
    material_rating: int = 0
    recommendation_rating: int = 0
    topics_learned: str | None = None
    action_plan: str | None = None
    suggestions: str | None = None
    q1_relevance: int | None = None
    q2_application: int | None = None
    q3_performance: int | None = None
    q4_influence: int | None = None
    q5_efficiency: int | None = None
    average_rating: float | None = None
    manager_agrees: str | None = None
    manager_comment: str | None = None
    status: EnrollmentStatus
    created_at: datetime


class SessionOut(CamelModel):
    id: str
    program_name: str
    trainer_name: str | None = None
    start_date: datetime
    end_date: datetime
    start_time: str
    end_time: str
    location: str | None = None
    topics: str | None = None
    template_type: str
    feedback_creation_date: datetime | None = None
    send_feedback_automatically: bool
    emails_sent: bool
    feedback_reminder_sent: bool
    nomination_batch_id: str | None = None
    created_at: datetime


class SessionDetailOut(SessionOut):
    batch: BatchOut | None = None
    nominations: list[NominationOut] = Field(default_factory=list)
    enrollments: list[EnrollmentOut] = Field(default_factory=list)


class SessionCalendarItem(CamelModel):
    id: str
    start_date: datetime
    end_date: datetime
    feedback_creation_date: datetime | None = None
    emails_sent: bool
    send_feedback_automatically: bool


class SessionsForDate(CamelModel):
    sessions: list[SessionDetailOut]
    pending_count: int


class AddNominationsIn(CamelModel):
    nomination_ids: list[str] = Field(min_length=1)


class JoinBatchIn(CamelModel):
    emp_id: str = Field(min_length=1)


class RegisterAndJoinIn(CamelModel):
    emp_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    email: str | None = None
    grade: Grade | None = None
    section_name: str | None = None
    designation: str | None = None
    sub_department: str | None = None
    location: str | None = None
    mobile: str | None = None
    years_of_experience: int | None = Field(default=None, ge=0)
    manager_name: str | None = None
    manager_email: str | None = None


class JoinBatchResult(CamelModel):
    """``employee_not_found`` tells the QR page to show the registration form instead."""

    joined: bool
    employee_not_found: bool = False
    nomination: NominationOut | None = None
    message: str | None = None


class FeedbackAutomationIn(CamelModel):
    enabled: bool


class ParticipantIn(CamelModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    emp_id: str | None = None
    manager_name: str | None = None
    manager_email: str | None = None


class AddParticipantsIn(CamelModel):
    participants: list[ParticipantIn] = Field(min_length=1)


class SelfEnrollIn(CamelModel):
    session_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    email: str = Field(min_length=1)
    emp_id: str | None = None
    manager_name: str | None = None
    manager_email: str = Field(min_length=1)
    pre_training_rating: int = Field(default=0, ge=0, le=5)
    post_training_rating: int = Field(default=0, ge=0, le=5)
    training_rating: int = Field(default=0, ge=0, le=5)
    content_rating: int = Field(default=0, ge=0, le=5)
    trainer_rating: int = Field(default=0, ge=0, le=5)
    material_rating: int = Field(default=0, ge=0, le=5)
    recommendation_rating: int = Field(default=0, ge=0, le=5)
    topics_learned: str | None = None
    action_plan: str | None = None
    suggestions: str | None = None
