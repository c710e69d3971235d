"""Services package: all business logic lives here, never in routers.

Files:
  nomination.py     Nomination intake, manager decisions and the approval e-mail
  tni.py            Employee self-service (TNI) nominations and profile
  session.py        Sessions, batch roster, locking, completion and QR joins
  feedback.py       Post-training feedback, manager review and the cron jobs
  cohort.py         Cohorts and their scheduled programs
  master_data.py    Sections, locations, designations, programs and employees
  trainer.py        Trainer register and trainer login accounts
  accounts.py       Bulk login-credential mail-out
  rate_limiter.py   Fixed-window limiter backed by the rate_limits table
  notifications.py  SMTP mailer and the e-mail builders
  sheets.py         Optional Google Sheets mirror of nominations

Rule: routers call services, services call repositories, repositories call the DB.
      No SQLAlchemy queries in routers. No FastAPI imports in services.
"""
