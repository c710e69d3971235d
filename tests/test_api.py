from __future__ import annotations

import asyncio
import re
from html import unescape
from urllib.parse import parse_qs, urlsplit

from sqlalchemy import select

from training_portal.core.security import generate_secure_token, nomination_scope
from training_portal.domain import AuditTrail
from tests.factories import make_employee, make_program

API = "/api/v1"
CRON_AUTH = {"Authorization": "Bearer test-cron-secret"}


async def _seed(session):
    employee = await make_employee(session, "E1")
    program = await make_program(session)
    return employee.id, program.id


def _links(email):
    """Relative path + query of every button in an e-mail, keyed by its action."""
    links = {}
    for href in re.findall(r'href="([^"]+)"', email.html):
        parts = urlsplit(unescape(href))
        action = parse_qs(parts.query).get("action", [None])[0]
        links[action] = f"{parts.path}?{parts.query}"
    return links


async def _nominate(client, emp_id, program_id):
    response = await client.post(
        f"{API}/nominations", json={"empId": emp_id, "programId": program_id, "justification": "Needed"}
    )
    assert response.status_code == 201
    return response.json()["data"]


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


async def test_unknown_route_uses_error_envelope(client):
    response = await client.get(f"{API}/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"error": {"code": "NOT_FOUND", "message": "Resource not found"}}


async def test_request_validation_uses_error_envelope(client):
    response = await client.post(f"{API}/nominations", json={"programId": "p1"})
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["message"].startswith("empId")


async def test_create_and_fetch_nomination(client, session, mailer):
    emp_id, program_id = await _seed(session)

    created = await _nominate(client, emp_id, program_id)

    assert created["status"] == "Pending"
    assert created["managerApprovalStatus"] == "Pending"
    assert created["employee"]["id"] == "E1"
    assert len(mailer.to("manager@example.com")) == 1

    fetched = (await client.get(f"{API}/nominations/{created['id']}")).json()["data"]
    assert fetched["id"] == created["id"]

    listing = (await client.get(f"{API}/nominations", params={"status": "Pending"})).json()
    assert listing["meta"]["total"] == 1
    assert listing["data"][0]["id"] == created["id"]


async def test_duplicate_nomination_is_conflict(client, session):
    emp_id, program_id = await _seed(session)
    await _nominate(client, emp_id, program_id)

    response = await client.post(f"{API}/nominations", json={"empId": emp_id, "programId": program_id})
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "DUPLICATE_NOMINATION"


async def test_approval_link_approves(client, session):
    emp_id, program_id = await _seed(session)
    nomination_id = (await _nominate(client, emp_id, program_id))["id"]
    token = generate_secure_token(nomination_scope(nomination_id))

    response = await client.get(
        f"{API}/approvals/nominations/{nomination_id}", params={"token": token, "action": "approve"}
    )

    assert response.status_code == 200
    assert "Nomination Approved" in response.text
    assert "Asha Rao" in response.text
    fetched = (await client.get(f"{API}/nominations/{nomination_id}")).json()["data"]
    assert fetched["status"] == "Approved"


async def test_approval_link_with_bad_token(client, session):
    emp_id, program_id = await _seed(session)
    nomination_id = (await _nominate(client, emp_id, program_id))["id"]

    response = await client.get(
        f"{API}/approvals/nominations/{nomination_id}", params={"token": "forged.1", "action": "approve"}
    )

    assert response.status_code == 401
    assert "Invalid Link" in response.text
    fetched = (await client.get(f"{API}/nominations/{nomination_id}")).json()["data"]
    assert fetched["status"] == "Pending"


async def test_approval_link_after_rejection(client, session):
    emp_id, program_id = await _seed(session)
    nomination_id = (await _nominate(client, emp_id, program_id))["id"]
    token = generate_secure_token(nomination_scope(nomination_id))
    url = f"{API}/approvals/nominations/{nomination_id}"

    rejected = await client.get(url, params={"token": token, "action": "reject", "reason": "Busy"})
    assert "Nomination Rejected" in rejected.text

    again = await client.get(url, params={"token": token, "action": "approve"})
    assert "Link Expired" in again.text


async def test_manager_email_links_carry_an_explicit_action(client, session, mailer):
    emp_id, program_id = await _seed(session)
    nomination_id = (await _nominate(client, emp_id, program_id))["id"]

    [email] = mailer.to("manager@example.com")
    links = _links(email)

    assert set(links) == {"approve", "reject"}
    assert all(f"/approvals/nominations/{nomination_id}" in link for link in links.values())
    fetched = (await client.get(f"{API}/nominations/{nomination_id}")).json()["data"]
    assert fetched["status"] == "Pending"


async def test_approval_link_without_action_changes_nothing(client, session):
    emp_id, program_id = await _seed(session)
    nomination_id = (await _nominate(client, emp_id, program_id))["id"]
    token = generate_secure_token(nomination_scope(nomination_id))

    response = await client.get(f"{API}/approvals/nominations/{nomination_id}", params={"token": token})

    assert response.status_code == 400
    assert "Unknown action" in response.text
    fetched = (await client.get(f"{API}/nominations/{nomination_id}")).json()["data"]
    assert fetched["status"] == "Pending"


async def test_release_seat_link_from_session_email(client, session, mailer):
    await _seed(session)
    created = await client.post(
        f"{API}/sessions",
        json={"programName": "Safety Basics", "startDate": "2026-03-10T04:30:00Z", "endDate": "2026-03-10T07:30:00Z"},
    )
    batch_id = created.json()["data"]["nominationBatchId"]
    joined = (await client.post(f"{API}/batches/{batch_id}/join", json={"empId": "E1"})).json()["data"]
    nomination_id = joined["nomination"]["id"]
    assert joined["nomination"]["status"] == "Batched"

    [email] = [e for e in mailer.to("manager@example.com") if "Session enrollment" in e.subject]
    response = await client.get(_links(email)["reject"])

    assert response.status_code == 200
    assert "Nomination Rejected" in response.text
    fetched = (await client.get(f"{API}/nominations/{nomination_id}")).json()["data"]
    assert fetched["status"] == "Pending"
    assert fetched["managerApprovalStatus"] == "Rejected"
    assert fetched["batchId"] is None


async def test_forwarded_for_is_ignored_from_untrusted_peer(client, monkeypatch):
    from training_portal.core.config import settings

    monkeypatch.setattr(settings, "rate_limit_requests", 2)
    url = f"{API}/approvals/nominations/n1"
    params = {"token": "forged.1", "action": "approve"}

    statuses = [
        (await client.get(url, params=params, headers={"X-Forwarded-For": f"10.0.0.{i}"})).status_code
        for i in range(3)
    ]

    assert statuses == [401, 401, 429]


async def test_forwarded_for_is_honoured_from_trusted_proxy(client, monkeypatch):
    from training_portal.core.config import settings

    monkeypatch.setattr(settings, "rate_limit_requests", 2)
    monkeypatch.setattr(settings, "trusted_proxies", "127.0.0.1")
    url = f"{API}/approvals/nominations/n1"
    params = {"token": "forged.1", "action": "approve"}

    statuses = [
        (await client.get(url, params=params, headers={"X-Forwarded-For": f"10.0.0.{i}"})).status_code
        for i in range(3)
    ]

    assert statuses == [401, 401, 401]


async def test_approval_link_unknown_action(client):
    response = await client.get(f"{API}/approvals/nominations/n1", params={"token": "x", "action": "maybe"})
    assert response.status_code == 400


async def test_session_and_qr_join(client, session, mailer):
    await _seed(session)

    created = await client.post(
        f"{API}/sessions",
        json={
            "programName": "Safety Basics",
            "trainerName": "Ravi Kumar",
            "startDate": "2026-03-10T04:30:00Z",
            "endDate": "2026-03-10T07:30:00Z",
        },
    )
    assert created.status_code == 201
    body = created.json()["data"]
    assert body["batch"]["status"] == "Forming"
    batch_id = body["nominationBatchId"]

    unknown = (await client.post(f"{API}/batches/{batch_id}/join", json={"empId": "ghost"})).json()["data"]
    assert unknown["joined"] is False
    assert unknown["employeeNotFound"] is True

    joined = (await client.post(f"{API}/batches/{batch_id}/join", json={"empId": "E1"})).json()["data"]
    assert joined["joined"] is True
    assert joined["nomination"]["status"] == "Batched"
    assert joined["nomination"]["source"] == "QR"

    locked = await client.post(f"{API}/sessions/{body['id']}/lock")
    assert locked.json()["data"]["status"] == "Scheduled"

    late = await client.post(f"{API}/batches/{batch_id}/join", json={"empId": "E1"})
    assert late.status_code == 409


async def test_self_enroll_answers_200_when_repeated(client, session):
    await _seed(session)
    created = await client.post(
        f"{API}/sessions",
        json={"programName": "Safety Basics", "startDate": "2026-03-10T04:30:00Z", "endDate": "2026-03-10T07:30:00Z"},
    )
    payload = {
        "sessionId": created.json()["data"]["id"],
        "name": "Walk In",
        "email": "walkin@example.com",
        "managerEmail": "boss@example.com",
        "trainingRating": 5,
    }

    first = await client.post(f"{API}/sessions/enroll", json=payload)
    second = await client.post(f"{API}/sessions/enroll", json=payload)

    assert first.status_code == 201
    assert second.status_code == 200
    assert second.json()["data"]["id"] == first.json()["data"]["id"]


async def test_cron_requires_bearer_secret(client):
    response = await client.post(f"{API}/cron/feedback-reminder")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"

    response = await client.post(f"{API}/cron/feedback-reminder", headers={"Authorization": "Bearer wrong"})
    assert response.status_code == 401


async def test_cron_jobs_run_with_secret(client):
    reminders = await client.get(f"{API}/cron/feedback-reminder", headers=CRON_AUTH)
    assert reminders.status_code == 200
    assert reminders.json()["data"]["message"] == "Reminders sent to 0 trainers."

    feedback = await client.post(f"{API}/cron/automated-feedback", headers=CRON_AUTH)
    assert feedback.json()["data"] == {"message": "Automated feedback sent to 0 employees.", "count": 0}


async def test_master_data_import_endpoint(client):
    response = await client.post(
        f"{API}/master-data/employees/import",
        json={"rows": [{"id": "E9", "name": "Nina", "email": "nina@example.com", "grade": "WORKMAN"}, {"id": "E10"}]},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["count"] == 1
    assert data["errors"] == ["Row 2: Missing required fields (id, name, email, grade)"]


async def test_requests_are_audited(client, session, audit_factory):
    emp_id, program_id = await _seed(session)
    await _nominate(client, emp_id, program_id)

    # Audit rows are written after the response is sent
    for _ in range(50):
        async with audit_factory() as audit_session:
            rows = (await audit_session.execute(select(AuditTrail))).scalars().all()
        if rows:
            break
        await asyncio.sleep(0.02)

    [row] = rows
    assert row.method == "POST"
    assert row.path == f"{API}/nominations"
    assert row.status_code == 201
    assert row.entity_type == "nominations"


async def test_bulk_credentials_endpoint(client, mailer):
    response = await client.post(
        f"{API}/accounts/credentials",
        json={
            "recipients": [
                {"empId": "E1", "name": "Asha Rao", "email": "asha@example.com", "password": "Pa55word"},
                {"empId": "E2", "name": "No Mail", "email": "", "password": "x"},
            ],
            "subject": "Portal access",
        },
    )

    assert response.status_code == 200
    assert response.json()["data"] == [
        {"email": "asha@example.com", "success": True, "error": None},
        {"email": "", "success": False, "error": "Missing required fields"},
    ]
    [email] = mailer.sent
    assert email.subject == "Portal access"


async def test_resend_feedback_link_endpoint(client, session, mailer):
    await _seed(session)
    created = await client.post(
        f"{API}/sessions",
        json={"programName": "Safety Basics", "startDate": "2026-03-10T04:30:00Z", "endDate": "2026-03-10T07:30:00Z"},
    )
    session_id = created.json()["data"]["id"]
    enrolled = await client.post(
        f"{API}/sessions/enroll",
        json={"sessionId": session_id, "name": "Walk In", "email": "walkin@example.com", "managerEmail": "boss@example.com"},
    )
    enrollment_id = enrolled.json()["data"]["id"]

    response = await client.post(f"{API}/feedback/employee/{enrollment_id}/resend")

    assert response.status_code == 200
    assert response.json()["data"]["count"] == 1
    [email] = mailer.to("walkin@example.com")
    assert f"/feedback/employee/{enrollment_id}?token=" in email.html

    missing = await client.post(f"{API}/feedback/employee/missing/resend")
    assert missing.status_code == 404
