"""SQLAlchemy ORM model for training programs."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import JSON, Column, ForeignKey, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from training_portal.db.base import Base
from training_portal.domain.enums import TrainingCategory, db_enum
from training_portal.domain.mixins import TimestampMixin, UUIDPrimaryKeyMixin

program_sections = Table(
    "program_sections",
    Base.metadata,
    Column("program_id", String(36), ForeignKey("programs.id", ondelete="CASCADE"), primary_key=True),
    Column("section_id", String(36), ForeignKey("sections.id", ondelete="CASCADE"), primary_key=True),
)


class Program(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "programs"

    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    category: Mapped[TrainingCategory] = mapped_column(
        db_enum(TrainingCategory), default=TrainingCategory.TECHNICAL, nullable=False
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Grades eligible to nominate; empty list means every grade
    target_grades: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    # Empty means the program is open to every section
    sections: Mapped[List["Section"]] = relationship(
        secondary=program_sections, back_populates="programs", lazy="selectin"
    )
    nominations: Mapped[List["Nomination"]] = relationship(
        back_populates="program", lazy="noload", passive_deletes=True
    )

    def is_open_to(self, grade: Optional[str], section_name: Optional[str]) -> bool:
        """True if an employee with *grade* / *section_name* may nominate."""
        grades = [str(g).upper() for g in (self.target_grades or [])]
        if grades and (not grade or str(getattr(grade, "value", grade)).upper() not in grades):
            return False
        section_names = {s.name for s in self.sections}
        if section_names and section_name not in section_names:
            return False
        return True
