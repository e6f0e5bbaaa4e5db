"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status

from workshop_manager.api.admin import router as admin_router
from workshop_manager.api.schemas import (
    ServiceDraftIn,
    SessionAction,
    SessionView,
    session_command,
)
from workshop_manager.app_logging import configure_logging
from workshop_manager.containers import AppContainer
from workshop_manager.domain.ledger import ServiceRecord
from workshop_manager.domain.models import UserRecord, Workshop
from workshop_manager.domain.reports import ReportPeriod
from workshop_manager.services import time_tracking
from workshop_manager.services.durations import format_hours_minutes
from workshop_manager.services.orders import ServiceQuote

_RECENT_SERVICES = 10


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app_container: AppContainer = app.state.container
        app_container.poller.start()
        logger.info(
            "Snapshot polling every %.1fs",
            app_container.settings.sync_poll_interval_seconds,
        )
        yield
        await app_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/sync/status")
    async def sync_status(request: Request) -> dict[str, str]:
        """Report the state of the remote synchronization."""
        state_container: AppContainer = request.app.state.container
        return {"status": state_container.store.status.value}

    @app.get("/workshops/{workshop_id}/mechanics/{mechanic_id}/session")
    async def current_session(
        workshop_id: str, mechanic_id: str, request: Request
    ) -> dict[str, object]:
        """Return the mechanic's open shift, if any."""
        state_container: AppContainer = request.app.state.container
        workshop, _ = _resolve_mechanic(state_container, workshop_id, mechanic_id)
        session = time_tracking.current_session(workshop.sessions, mechanic_id)
        now_ms = state_container.store.clock()
        return {
            "session": SessionView.from_session(session, now_ms) if session else None
        }

    @app.post("/workshops/{workshop_id}/mechanics/{mechanic_id}/session/{action}")
    async def session_action(
        workshop_id: str, mechanic_id: str, action: SessionAction, request: Request
    ) -> dict[str, object]:
        """Start, pause, resume or stop the mechanic's own shift."""
        state_container: AppContainer = request.app.state.container
        _resolve_mechanic(state_container, workshop_id, mechanic_id)
        changed = state_container.store.dispatch(
            session_command(action, workshop_id, mechanic_id)
        )
        if not changed:
            return {"status": "unchanged"}
        return {
            "status": "ok",
            "session": _latest_session(state_container, workshop_id, mechanic_id),
        }

    @app.get("/workshops/{workshop_id}/mechanics/{mechanic_id}/sessions/history")
    async def session_history(
        workshop_id: str, mechanic_id: str, request: Request
    ) -> dict[str, object]:
        """Return the mechanic's completed shifts, newest first."""
        state_container: AppContainer = request.app.state.container
        workshop, _ = _resolve_mechanic(state_container, workshop_id, mechanic_id)
        now_ms = state_container.store.clock()
        return {
            "sessions": [
                SessionView.from_session(session, now_ms)
                for session in time_tracking.history_for(
                    workshop.sessions, mechanic_id
                )
            ]
        }

    @app.get("/workshops/{workshop_id}/mechanics/{mechanic_id}/dashboard")
    async def dashboard(
        workshop_id: str, mechanic_id: str, request: Request
    ) -> dict[str, object]:
        """Return the mechanic's personal numbers."""
        state_container: AppContainer = request.app.state.container
        workshop, mechanic = _resolve_mechanic(
            state_container, workshop_id, mechanic_id
        )
        reports = state_container.report_service
        rollups = reports.time_rollup(workshop_id, ReportPeriod.DAILY) or []
        worked_today = next(
            (r.total_ms for r in rollups if r.mechanic_id == mechanic_id), 0
        )
        session = time_tracking.current_session(workshop.sessions, mechanic_id)
        now_ms = state_container.store.clock()
        return {
            "mechanic_id": mechanic.id,
            "name": mechanic.name,
            "pending_tax": mechanic.pending_tax,
            "currency_symbol": workshop.settings.currency_symbol,
            "revenue": reports.revenue(workshop_id, mechanic_id),
            "worked_today_ms": worked_today,
            "worked_today": format_hours_minutes(worked_today),
            "session": SessionView.from_session(session, now_ms) if session else None,
            "recent_services": reports.services(
                workshop_id, mechanic_id=mechanic_id, limit=_RECENT_SERVICES
            ),
        }

    @app.get("/workshops/{workshop_id}/mechanics/{mechanic_id}/services")
    async def service_history(
        workshop_id: str, mechanic_id: str, request: Request, q: str = ""
    ) -> dict[str, object]:
        """Search the mechanic's own service records, newest first."""
        state_container: AppContainer = request.app.state.container
        _resolve_mechanic(state_container, workshop_id, mechanic_id)
        return {
            "services": state_container.report_service.services(
                workshop_id, q, mechanic_id=mechanic_id
            )
        }

    @app.post("/workshops/{workshop_id}/services/quote")
    async def quote_service(
        workshop_id: str, payload: ServiceDraftIn, request: Request
    ) -> ServiceQuote:
        """Price an order with the workshop's current settings."""
        state_container: AppContainer = request.app.state.container
        quote = state_container.order_service.quote(workshop_id, payload.to_draft())
        if quote is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return quote

    @app.post("/workshops/{workshop_id}/services")
    async def finalize_service(
        workshop_id: str, payload: ServiceDraftIn, request: Request
    ) -> ServiceRecord:
        """Finalize an order into the workshop history."""
        state_container: AppContainer = request.app.state.container
        record = await state_container.order_service.finalize(
            workshop_id, payload.to_draft()
        )
        if record is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return record

    return app


def _resolve_mechanic(
    container: AppContainer, workshop_id: str, mechanic_id: str
) -> tuple[Workshop, UserRecord]:
    workshop = container.store.workshop(workshop_id)
    mechanic = container.store.state.users.get(mechanic_id)
    if workshop is None or mechanic is None or mechanic.workshop_id != workshop_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return workshop, mechanic


def _latest_session(
    container: AppContainer, workshop_id: str, mechanic_id: str
) -> SessionView | None:
    workshop = container.store.workshop(workshop_id)
    if workshop is None:
        return None
    sessions = [
        session
        for session in time_tracking.all_sessions(workshop.sessions)
        if session.mechanic_id == mechanic_id
    ]
    if not sessions:
        return None
    return SessionView.from_session(sessions[0], container.store.clock())
