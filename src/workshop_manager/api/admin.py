"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import HTMLResponse

from workshop_manager.api.schemas import (
    AdminSessionAction,
    ConfirmRequest,
    DeleteSessionsRequest,
    PricingRequest,
    SessionView,
    SettleRequest,
    WebhooksRequest,
    session_command,
)
from workshop_manager.domain.reports import ReportPeriod
from workshop_manager.services import ledger, time_tracking
from workshop_manager.services.durations import format_hours_minutes
from workshop_manager.services.store import (
    DeleteSessions,
    SettleTax,
    UpdatePricing,
    UpdateWebhooks,
)

if TYPE_CHECKING:
    from workshop_manager.containers import AppContainer
    from workshop_manager.domain.models import Workshop

router = APIRouter(prefix="/admin", tags=["admin"])

_UNCHANGED = {"status": "unchanged"}


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


def _workshop_or_404(container: AppContainer, workshop_id: str) -> Workshop:
    workshop = container.store.workshop(workshop_id)
    if workshop is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return workshop


def _mechanic_or_404(
    container: AppContainer, workshop_id: str, mechanic_id: str
) -> None:
    _workshop_or_404(container, workshop_id)
    mechanic = container.store.state.users.get(mechanic_id)
    if mechanic is None or mechanic.workshop_id != workshop_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/workshops", dependencies=[Depends(require_admin)])
async def list_workshops(request: Request) -> dict[str, object]:
    """Return a summary for every workshop."""
    container: AppContainer = request.app.state.container
    return {"workshops": container.report_service.overview()}


@router.get(
    "/workshops/{workshop_id}/time-rollup", dependencies=[Depends(require_admin)]
)
async def time_rollup(
    workshop_id: str, request: Request, period: ReportPeriod = ReportPeriod.DAILY
) -> dict[str, object]:
    """Return worked time per staff member inside the period."""
    container: AppContainer = request.app.state.container
    rollups = container.report_service.time_rollup(workshop_id, period)
    if rollups is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return {
        "period": period.value,
        "staff": [
            {**asdict(rollup), "total": format_hours_minutes(rollup.total_ms)}
            for rollup in rollups
        ],
    }


@router.get(
    "/workshops/{workshop_id}/sessions", dependencies=[Depends(require_admin)]
)
async def list_sessions(workshop_id: str, request: Request) -> dict[str, object]:
    """Return every session of a workshop, newest first."""
    container: AppContainer = request.app.state.container
    workshop = _workshop_or_404(container, workshop_id)
    now_ms = container.store.clock()
    return {
        "sessions": [
            SessionView.from_session(session, now_ms)
            for session in time_tracking.all_sessions(workshop.sessions)
        ]
    }


@router.post(
    "/workshops/{workshop_id}/mechanics/{mechanic_id}/session/{action}",
    dependencies=[Depends(require_admin)],
)
async def session_action(
    workshop_id: str,
    mechanic_id: str,
    action: AdminSessionAction,
    request: Request,
    payload: ConfirmRequest | None = None,
) -> dict[str, object]:
    """Drive a mechanic's shift remotely."""
    container: AppContainer = request.app.state.container
    _mechanic_or_404(container, workshop_id, mechanic_id)
    command = session_command(
        action,
        workshop_id,
        mechanic_id,
        remote=True,
        confirmed=payload.confirm if payload else False,
    )
    if not container.store.dispatch(command):
        return _UNCHANGED
    return {"status": "ok"}


@router.post(
    "/workshops/{workshop_id}/sessions/delete", dependencies=[Depends(require_admin)]
)
async def delete_sessions(
    workshop_id: str, payload: DeleteSessionsRequest, request: Request
) -> dict[str, object]:
    """Delete session records after confirmation."""
    container: AppContainer = request.app.state.container
    _workshop_or_404(container, workshop_id)
    changed = container.store.dispatch(
        DeleteSessions(
            workshop_id=workshop_id,
            session_ids=frozenset(payload.session_ids),
            confirmed=payload.confirm,
        )
    )
    if not changed:
        return _UNCHANGED
    return {"status": "ok"}


@router.get("/workshops/{workshop_id}/tax", dependencies=[Depends(require_admin)])
async def tax_balances(workshop_id: str, request: Request) -> dict[str, object]:
    """Return outstanding tax per staff member."""
    container: AppContainer = request.app.state.container
    workshop = _workshop_or_404(container, workshop_id)
    staff = sorted(
        container.store.state.staff_of(workshop_id),
        key=lambda user: user.pending_tax,
        reverse=True,
    )
    return {
        "currency_symbol": workshop.settings.currency_symbol,
        "total_pending": sum(user.pending_tax for user in staff),
        "staff": [
            {
                "user_id": user.id,
                "name": user.name,
                "pending_tax": user.pending_tax,
                "can_settle": ledger.can_settle(user),
            }
            for user in staff
        ],
    }


@router.post(
    "/workshops/{workshop_id}/users/{user_id}/settle",
    dependencies=[Depends(require_admin)],
)
async def settle_user(
    workshop_id: str, user_id: str, payload: SettleRequest, request: Request
) -> dict[str, object]:
    """Settle a user's whole balance after confirmation."""
    container: AppContainer = request.app.state.container
    _workshop_or_404(container, workshop_id)
    changed = container.store.dispatch(
        SettleTax(
            workshop_id=workshop_id,
            user_id=user_id,
            settled_by_id=payload.settled_by_id,
            settled_by_name=payload.settled_by_name,
            confirmed=payload.confirm,
        )
    )
    if not changed:
        return _UNCHANGED
    workshop = _workshop_or_404(container, workshop_id)
    return {"status": "ok", "settlement": workshop.settlements[-1]}


@router.get(
    "/workshops/{workshop_id}/settlements", dependencies=[Depends(require_admin)]
)
async def list_settlements(workshop_id: str, request: Request) -> dict[str, object]:
    """Return the settlement archive, newest first."""
    container: AppContainer = request.app.state.container
    workshop = _workshop_or_404(container, workshop_id)
    return {"settlements": ledger.settlements_newest_first(workshop)}


@router.get(
    "/workshops/{workshop_id}/revenue", dependencies=[Depends(require_admin)]
)
async def revenue(
    workshop_id: str, request: Request, mechanic_id: str | None = None
) -> dict[str, object]:
    """Return revenue totals of a workshop or one mechanic."""
    container: AppContainer = request.app.state.container
    rollup = container.report_service.revenue(workshop_id, mechanic_id)
    if rollup is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return {"revenue": rollup}


@router.get(
    "/workshops/{workshop_id}/services", dependencies=[Depends(require_admin)]
)
async def service_history(
    workshop_id: str,
    request: Request,
    q: str = "",
    mechanic_id: str | None = None,
) -> dict[str, object]:
    """Search the whole service history of a workshop, newest first."""
    container: AppContainer = request.app.state.container
    services = container.report_service.services(workshop_id, q, mechanic_id)
    if services is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return {"services": services}


@router.put(
    "/workshops/{workshop_id}/settings/pricing", dependencies=[Depends(require_admin)]
)
async def update_pricing(
    workshop_id: str, payload: PricingRequest, request: Request
) -> dict[str, object]:
    """Replace the pricing settings of a workshop."""
    container: AppContainer = request.app.state.container
    _workshop_or_404(container, workshop_id)
    changed = container.store.dispatch(
        UpdatePricing(workshop_id=workshop_id, **payload.model_dump())
    )
    if not changed:
        return _UNCHANGED
    workshop = _workshop_or_404(container, workshop_id)
    return {"status": "ok", "settings": workshop.settings}


@router.put(
    "/workshops/{workshop_id}/settings/webhooks", dependencies=[Depends(require_admin)]
)
async def update_webhooks(
    workshop_id: str, payload: WebhooksRequest, request: Request
) -> dict[str, object]:
    """Replace the notification webhooks of a workshop."""
    container: AppContainer = request.app.state.container
    _workshop_or_404(container, workshop_id)
    changed = container.store.dispatch(
        UpdateWebhooks(workshop_id=workshop_id, **payload.model_dump())
    )
    if not changed:
        return _UNCHANGED
    workshop = _workshop_or_404(container, workshop_id)
    return {"status": "ok", "settings": workshop.settings}


@router.get("/ui", response_class=HTMLResponse)
async def admin_ui() -> HTMLResponse:
    """Minimal admin UI that consumes the admin API."""
    return HTMLResponse(_ADMIN_UI_HTML)


_ADMIN_UI_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Workshop Manager Admin</title>
    <style>
      body { font-family: ui-sans-serif, system-ui, sans-serif; margin: 2rem; }
      h1 { margin-bottom: 0.5rem; }
      .row { margin-bottom: 1rem; }
      input, select { padding: 0.4rem 0.6rem; width: 240px; }
      button { padding: 0.4rem 0.8rem; margin-right: 0.5rem; }
      pre { background: #f6f6f6; padding: 1rem; overflow: auto; }
    </style>
  </head>
  <body>
    <h1>Workshop Manager Admin</h1>
    <div class="row">
      <label>Admin token</label><br />
      <input id="token" type="password" placeholder="X-Admin-Token" />
    </div>
    <div class="row">
      <label>Workshop</label><br />
      <input id="workshop" value="w1" />
      <select id="period">
        <option value="daily">Daily</option>
        <option value="weekly">Weekly</option>
        <option value="monthly">Monthly</option>
      </select>
    </div>
    <div class="row">
      <button onclick="loadEndpoint('/admin/workshops')">Workshops</button>
      <button onclick="loadWorkshop('time-rollup?period=' + period())">Hours</button>
      <button onclick="loadWorkshop('sessions')">Sessions</button>
      <button onclick="loadWorkshop('tax')">Tax</button>
      <button onclick="loadWorkshop('settlements')">Settlements</button>
      <button onclick="loadWorkshop('revenue')">Revenue</button>
      <button onclick="loadWorkshop('services')">Services</button>
    </div>
    <pre id="output">Ready.</pre>
    <script>
      function period() {
        return document.getElementById('period').value;
      }
      function loadWorkshop(path) {
        const workshop = document.getElementById('workshop').value;
        return loadEndpoint('/admin/workshops/' + workshop + '/' + path);
      }
      async function loadEndpoint(path) {
        const token = document.getElementById('token').value;
        const output = document.getElementById('output');
        output.textContent = 'Loading...';
        const res = await fetch(path, {
          headers: { 'X-Admin-Token': token }
        });
        if (!res.ok) {
          output.textContent = 'Error: ' + res.status;
          return;
        }
        const data = await res.json();
        output.textContent = JSON.stringify(data, null, 2);
      }
    </script>
  </body>
</html>
"""
