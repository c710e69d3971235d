"""v1 router package: all /api/v1/* endpoints live here.

Files:
  master_data.py   Sections, locations, designations, programs, employees
  tni.py           Employee self-service nominations
  nominations.py   Admin nomination listing and manager decisions
  approvals.py     E-mailed approval links (HTML) and their JSON twin
  sessions.py      Sessions, locking, completion, participants, feedback e-mails
  batches.py       Batch roster and QR joins
  feedback.py      Tokenised employee and manager feedback forms
  trainers.py      Trainer register
  accounts.py      Bulk login-credential mail-out
  cohorts.py       Cohorts, members and cohort sessions
  cron.py          Scheduled jobs (Bearer CRON_SECRET)

Rule: Routers only handle HTTP (request parsing, response shaping).
      All business logic delegates to training_portal/services/.
"""
