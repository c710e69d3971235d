"""Closed vocabularies for every status / category column.

Values are stored as their ``.value`` strings, so the database stays readable
and existing rows written with the same spelling keep working.
"""

from __future__ import annotations

import enum

from sqlalchemy import Enum as SAEnum


class NominationStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    BATCHED = "Batched"
    COMPLETED = "Completed"


class ManagerApprovalStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class ManagerDecision(str, enum.Enum):
    """What a manager may answer on an approval link."""

    APPROVED = "Approved"
    REJECTED = "Rejected"


class BatchStatus(str, enum.Enum):
    FORMING = "Forming"
    SCHEDULED = "Scheduled"
    COMPLETED = "Completed"

    @property
    def is_locked(self) -> bool:
        return self is not BatchStatus.FORMING


class EnrollmentStatus(str, enum.Enum):
    PENDING = "Pending"
    PENDING_MANAGER = "Pending Manager"
    COMPLETED = "Completed"
    MANAGER_DISAGREES = "Manager Disagrees"


class CohortStatus(str, enum.Enum):
    DRAFT = "Draft"
    ACTIVE = "Active"
    COMPLETED = "Completed"


class CohortProgramStatus(str, enum.Enum):
    PENDING = "Pending"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"


class CohortMemberStatus(str, enum.Enum):
    ACTIVE = "Active"
    COMPLETED = "Completed"


class Grade(str, enum.Enum):
    EXECUTIVE = "EXECUTIVE"
    WORKMAN = "WORKMAN"

    @classmethod
    def parse(cls, raw: str | None) -> "Grade | None":
        """Case-insensitive lookup; None for blanks or unknown values."""
        if not raw:
            return None
        try:
            return cls(str(raw).strip().upper())
        except ValueError:
            return None


class TrainingCategory(str, enum.Enum):
    BEHAVIOURAL = "Behavioural"
    TECHNICAL = "Technical"
    SAFETY = "Safety"
    FUNCTIONAL = "Functional"
    LEADERSHIP = "Leadership"


class NominationSource(str, enum.Enum):
    TNI = "TNI"
    MANUAL = "MANUAL"
    QR = "QR"
    COHORT = "COHORT"


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    TRAINER = "TRAINER"


# Nominations still competing for a seat; a second one for the same program is refused.
OPEN_NOMINATION_STATUSES = (
    NominationStatus.PENDING,
    NominationStatus.APPROVED,
    NominationStatus.BATCHED,
)


def db_enum(enum_cls: type[enum.Enum], length: int = 30) -> SAEnum:
    """Column type storing the enum *value* (not the member name) as VARCHAR."""
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )
