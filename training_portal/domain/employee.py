"""SQLAlchemy ORM models for employees and the organisational master data."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from training_portal.db.base import Base
from training_portal.domain.enums import Grade, db_enum
from training_portal.domain.mixins import TimestampMixin, UUIDPrimaryKeyMixin


class Section(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "sections"

    name: Mapped[str] = mapped_column(String(150), unique=True, nullable=False)

    programs: Mapped[List["Program"]] = relationship(
        secondary="program_sections", back_populates="sections", lazy="noload"
    )


class Location(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "locations"

    name: Mapped[str] = mapped_column(String(150), unique=True, nullable=False)


class Designation(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "designations"

    name: Mapped[str] = mapped_column(String(150), unique=True, nullable=False)


class Employee(Base, TimestampMixin):
    """Employee master record, keyed by the company employee id."""

    __tablename__ = "employees"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), index=True, nullable=True)
    grade: Mapped[Optional[Grade]] = mapped_column(db_enum(Grade), nullable=True)

    section_name: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    designation: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    sub_department: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    mobile: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    years_of_experience: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    manager_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    manager_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    nominations: Mapped[List["Nomination"]] = relationship(
        back_populates="employee", lazy="noload", passive_deletes=True
    )
