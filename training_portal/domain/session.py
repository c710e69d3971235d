"""SQLAlchemy ORM models for training sessions and their enrollments."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from training_portal.db.base import Base
from training_portal.domain.enums import EnrollmentStatus, db_enum
from training_portal.domain.mixins import TimestampMixin, UUIDPrimaryKeyMixin


class TrainingSession(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "training_sessions"

    program_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    trainer_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    start_time: Mapped[str] = mapped_column(String(20), default="10:00 am", nullable=False)
    end_time: Mapped[str] = mapped_column(String(20), default="1:00 pm", nullable=False)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    topics: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    template_type: Mapped[str] = mapped_column(String(50), default="Technical", nullable=False)

    # Feedback automation
    feedback_creation_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    send_feedback_automatically: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    emails_sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    feedback_reminder_sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    nomination_batch_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("nomination_batches.id", ondelete="SET NULL"),
        unique=True,
        nullable=True,
    )

    batch: Mapped[Optional["NominationBatch"]] = relationship(
        back_populates="session", lazy="noload"
    )
    enrollments: Mapped[List["Enrollment"]] = relationship(
        back_populates="session", lazy="noload", cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def nominations(self) -> list:
        """Nominations of the attached batch (empty unless the batch was loaded)."""
        return list(self.batch.nominations) if self.batch is not None else []


class Enrollment(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """One employee attending one session, with Level-1 and post-training feedback."""

    __tablename__ = "enrollments"
    __table_args__ = (UniqueConstraint("session_id", "employee_email", name="uq_enrollment_session_email"),)

    session_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("training_sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    employee_name: Mapped[str] = mapped_column(String(255), nullable=False)
    employee_email: Mapped[str] = mapped_column(String(255), nullable=False)
    emp_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    manager_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    manager_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Level-1 (end of session) ratings, 0 = not answered
    pre_training_rating: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    post_training_rating: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    training_rating: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    content_rating: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    trainer_rating: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    material_rating: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    recommendation_rating: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    topics_learned: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    action_plan: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    suggestions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Post-training effectiveness feedback
    q1_relevance: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    q2_application: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    q3_performance: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    q4_influence: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    q5_efficiency: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    average_rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Manager validation
    manager_agrees: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    manager_comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[EnrollmentStatus] = mapped_column(
        db_enum(EnrollmentStatus), default=EnrollmentStatus.PENDING, nullable=False, index=True
    )

    session: Mapped["TrainingSession"] = relationship(back_populates="enrollments", lazy="noload")
