"""Pydantic schemas package.

Folder intent:
  common.py      CamelModel base, HealthResponse, shared small DTOs (all schemas inherit CamelModel)
  employee.py    Employees, programs and master data
  nomination.py  Nominations, TNI intake, manager decisions
  session.py     Sessions, batches, enrollments, QR joins
  feedback.py    Post-training feedback and manager review
  trainer.py     Trainers
  cohort.py      Cohorts
"""
