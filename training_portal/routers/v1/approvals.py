"""Manager approval links.

The e-mails carry two links, ``GET /approvals/nominations/{id}?token=...&action=approve``
and the same with ``action=reject``. They open directly in the manager's
browser, so that endpoint answers with a small HTML page instead of the JSON
envelope. There is no default action. ``POST`` is the same action for the
frontend and returns JSON.
"""

from __future__ import annotations

from html import escape

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from training_portal.core.config import settings
from training_portal.core.exceptions import (
    ConflictError,
    NotFoundError,
    RateLimitedError,
    UnauthorizedError,
)
from training_portal.core.response import DataResponse
from training_portal.db.base import get_db
from training_portal.domain.enums import ManagerDecision
from training_portal.schemas.nomination import ManagerDecisionIn, NominationOut
from training_portal.services.nomination import NominationService
from training_portal.services.notifications import Mailer, get_mailer

router = APIRouter(prefix="/approvals", tags=["Approvals"])

_ACTIONS = {"approve": ManagerDecision.APPROVED, "reject": ManagerDecision.REJECTED}


def _client_ip(request: Request) -> str | None:
    """Peer address, or the hop our own proxy appended when the peer is trusted."""
    peer = request.client.host if request.client else None
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded and peer in settings.trusted_proxy_hosts:
        return forwarded.split(",")[-1].strip() or peer
    return peer


def render_page(title: str, message: str, color: str, status_code: int = 200) -> HTMLResponse:
    html = f"""<html>
  <head>
    <title>{escape(title)}</title>
    <style>
      body {{ font-family: sans-serif; display: flex; justify-content: center; align-items: center;
             height: 100vh; background-color: #f9fafb; margin: 0; }}
      .card {{ background: white; padding: 40px; border-radius: 12px; box-shadow: 0 4px 6px rgba(0,0,0,0.1);
               text-align: center; max-width: 400px; border-top: 6px solid {color}; }}
      h1 {{ color: {color}; margin-bottom: 10px; font-size: 24px; }}
      p {{ color: #374151; line-height: 1.6; }}
    </style>
  </head>
  <body>
    <div class="card">
      <h1>{escape(title)}</h1>
      <p>{message}</p>
    </div>
  </body>
</html>"""
    return HTMLResponse(html, status_code=status_code)


@router.get("/nominations/{nomination_id}", response_class=HTMLResponse)
async def decide_from_link(
    nomination_id: str,
    request: Request,
    token: str | None = Query(default=None),
    action: str | None = Query(default=None),
    reason: str | None = Query(default=None),
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    decision = _ACTIONS.get((action or "").lower())
    if decision is None:
        return render_page("Invalid Request", "Unknown action.", "#dc2626", status_code=400)

    try:
        nomination = await NominationService(session, mailer=mailer).submit_manager_decision_from_link(
            nomination_id, token, decision, reason, client_ip=_client_ip(request)
        )
    except RateLimitedError as exc:
        return render_page("Too Many Requests", escape(exc.message), "#ca8a04", status_code=429)
    except UnauthorizedError as exc:
        return render_page("Invalid Link", escape(exc.message), "#dc2626", status_code=401)
    except NotFoundError:
        return render_page("Not Found", "This nomination no longer exists.", "#dc2626", status_code=404)
    except ConflictError:
        return render_page("Link Expired", "This nomination has already been processed.", "#ca8a04")

    nominee = escape(nomination.employee.name if nomination.employee else "the employee")
    if decision is ManagerDecision.APPROVED:
        return render_page(
            "Nomination Approved",
            f"You have successfully <strong>approved</strong> the nomination for {nominee}.",
            "#166534",
        )
    return render_page(
        "Nomination Rejected",
        f"You have <strong>rejected</strong> the nomination for {nominee}.",
        "#dc2626",
    )


@router.post("/nominations/{nomination_id}", response_model=DataResponse[NominationOut])
async def decide_from_frontend(
    nomination_id: str,
    body: ManagerDecisionIn,
    request: Request,
    token: str | None = Query(default=None),
    session: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    nomination = await NominationService(session, mailer=mailer).submit_manager_decision_from_link(
        nomination_id, token, body.decision, body.reason, client_ip=_client_ip(request)
    )
    return {"data": NominationOut.model_validate(nomination)}
