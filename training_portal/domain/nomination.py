"""SQLAlchemy ORM models for nominations and the batches that group them."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from training_portal.db.base import Base
from training_portal.domain.enums import (
    BatchStatus,
    ManagerApprovalStatus,
    NominationSource,
    NominationStatus,
    db_enum,
)
from training_portal.domain.mixins import TimestampMixin, UUIDPrimaryKeyMixin


class NominationBatch(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A group of nominations attending one training session."""

    __tablename__ = "nomination_batches"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    program_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("programs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[BatchStatus] = mapped_column(
        db_enum(BatchStatus), default=BatchStatus.FORMING, nullable=False, index=True
    )

    program: Mapped["Program"] = relationship(lazy="noload")
    nominations: Mapped[List["Nomination"]] = relationship(
        back_populates="batch", lazy="noload"
    )
    session: Mapped[Optional["TrainingSession"]] = relationship(
        back_populates="batch", lazy="noload", uselist=False
    )

    @property
    def is_locked(self) -> bool:
        return BatchStatus(self.status).is_locked


class Nomination(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "nominations"

    emp_id: Mapped[str] = mapped_column(
        String(50), ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True
    )
    program_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("programs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    batch_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("nomination_batches.id", ondelete="SET NULL"), nullable=True, index=True
    )

    status: Mapped[NominationStatus] = mapped_column(
        db_enum(NominationStatus), default=NominationStatus.PENDING, nullable=False, index=True
    )
    manager_approval_status: Mapped[ManagerApprovalStatus] = mapped_column(
        db_enum(ManagerApprovalStatus), default=ManagerApprovalStatus.PENDING, nullable=False
    )
    manager_rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    source: Mapped[NominationSource] = mapped_column(
        db_enum(NominationSource), default=NominationSource.TNI, nullable=False
    )
    justification: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    nominator_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    nominator_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    employee: Mapped["Employee"] = relationship(back_populates="nominations", lazy="noload")
    program: Mapped["Program"] = relationship(back_populates="nominations", lazy="noload")
    batch: Mapped[Optional["NominationBatch"]] = relationship(
        back_populates="nominations", lazy="noload"
    )
