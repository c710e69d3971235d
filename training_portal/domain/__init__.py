"""Domain package: all ORM models are imported here so Alembic autogenerate detects them.

Folder intent:
  enums.py       Status / category vocabularies stored in string columns
  workflow.py    Transition tables and the manager-decision rule (no DB access)
  employee.py    Employees and organisational master data (sections, locations, designations)
  program.py     Training programs and their eligible sections
  nomination.py  Nominations and nomination batches
  session.py     Training sessions and enrollments (feedback lives on the enrollment)
  trainer.py     Trainers and portal user accounts
  cohort.py      Cohorts, their program sequence, members and feedback
  rate_limit.py  Fixed-window limiter counters
  audit.py       Immutable audit trail (never updated or deleted)
  mixins.py      Shared UUID primary key and timestamps
"""

from training_portal.domain.audit import AuditTrail
from training_portal.domain.cohort import Cohort, CohortFeedback, CohortMember, CohortProgram
from training_portal.domain.employee import Designation, Employee, Location, Section
from training_portal.domain.nomination import Nomination, NominationBatch
from training_portal.domain.program import Program, program_sections
from training_portal.domain.rate_limit import RateLimit
from training_portal.domain.session import Enrollment, TrainingSession
from training_portal.domain.trainer import Trainer, User

__all__ = [
    "AuditTrail",
    "Cohort",
    "CohortFeedback",
    "CohortMember",
    "CohortProgram",
    "Designation",
    "Employee",
    "Enrollment",
    "Location",
    "Nomination",
    "NominationBatch",
    "Program",
    "RateLimit",
    "Section",
    "Trainer",
    "TrainingSession",
    "User",
    "program_sections",
]
