"""Post-training feedback and manager-review schemas."""

from __future__ import annotations

from training_portal.schemas.common import CamelModel


class EmployeeFeedbackIn(CamelModel):
    """Ratings are checked by the service (1..5) so the error uses the API envelope."""

    token: str
    q1: int
    q2: int
    q3: int
    q4: int
    q5: int


class ManagerReviewIn(CamelModel):
    token: str
    agree: str
    comments: str | None = None
