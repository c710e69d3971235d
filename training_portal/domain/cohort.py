"""SQLAlchemy ORM models for cohorts: a group of employees following a program sequence."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from training_portal.db.base import Base
from training_portal.domain.enums import (
    CohortMemberStatus,
    CohortProgramStatus,
    CohortStatus,
    db_enum,
)
from training_portal.domain.mixins import TimestampMixin, UUIDPrimaryKeyMixin, _now


class Cohort(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "cohorts"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[CohortStatus] = mapped_column(
        db_enum(CohortStatus), default=CohortStatus.DRAFT, nullable=False, index=True
    )

    programs: Mapped[List["CohortProgram"]] = relationship(
        back_populates="cohort",
        lazy="selectin",
        order_by="CohortProgram.seq",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    members: Mapped[List["CohortMember"]] = relationship(
        back_populates="cohort", lazy="selectin", cascade="all, delete-orphan", passive_deletes=True
    )


class CohortProgram(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "cohort_programs"

    cohort_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("cohorts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    program_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("programs.id", ondelete="CASCADE"), nullable=False
    )
    seq: Mapped[int] = mapped_column(Integer, nullable=False)
    session_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("training_sessions.id", ondelete="SET NULL"), nullable=True
    )
    status: Mapped[CohortProgramStatus] = mapped_column(
        db_enum(CohortProgramStatus), default=CohortProgramStatus.PENDING, nullable=False
    )

    cohort: Mapped["Cohort"] = relationship(back_populates="programs", lazy="noload")
    program: Mapped["Program"] = relationship(lazy="selectin")


class CohortMember(Base, UUIDPrimaryKeyMixin):
    __tablename__ = "cohort_members"
    __table_args__ = (UniqueConstraint("cohort_id", "employee_id", name="uq_cohort_member"),)

    cohort_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("cohorts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    employee_id: Mapped[str] = mapped_column(
        String(50), ForeignKey("employees.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[CohortMemberStatus] = mapped_column(
        db_enum(CohortMemberStatus), default=CohortMemberStatus.ACTIVE, nullable=False
    )
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, nullable=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    cohort: Mapped["Cohort"] = relationship(back_populates="members", lazy="noload")
    employee: Mapped["Employee"] = relationship(lazy="selectin")


class CohortFeedback(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "cohort_feedback"
    __table_args__ = (UniqueConstraint("cohort_id", "emp_id", name="uq_cohort_feedback"),)

    cohort_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("cohorts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    emp_id: Mapped[str] = mapped_column(
        String(50), ForeignKey("employees.id", ondelete="CASCADE"), nullable=False
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
