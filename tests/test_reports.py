"""Tests for rollups."""

from dataclasses import replace
from zoneinfo import ZoneInfo

from tests.conftest import NOON_MS, make_state, make_user
from workshop_manager.domain.ledger import ServiceRecord
from workshop_manager.domain.reports import ReportPeriod
from workshop_manager.domain.sessions import SessionBook
from workshop_manager.services import time_tracking
from workshop_manager.services.reports import (
    ReportService,
    mechanic_time_rollup,
    revenue_rollup,
    search_services,
    window_start_ms,
    workshop_overview,
)
from workshop_manager.services.store import StartSession

UTC_ZONE = ZoneInfo("UTC")
HOUR_MS = 3_600_000
MIDNIGHT_MS = NOON_MS - 12 * HOUR_MS


def _record(mechanic_id: str, final_price: float, tax: float) -> ServiceRecord:
    return ServiceRecord(
        id=f"r-{mechanic_id}-{final_price}",
        mechanic_id=mechanic_id,
        mechanic_name=mechanic_id,
        customer_name="John",
        customer_id="1",
        authorized_by="",
        parts=(),
        in_game_cost=0.0,
        freelance_fee=0.0,
        total_amount=final_price - tax,
        tax=tax,
        final_price=final_price,
        timestamp=1,
    )


def test_window_start_anchors_at_local_midnight() -> None:
    assert window_start_ms(ReportPeriod.DAILY, NOON_MS, UTC_ZONE) == MIDNIGHT_MS
    assert (
        window_start_ms(ReportPeriod.WEEKLY, NOON_MS, UTC_ZONE)
        == MIDNIGHT_MS - 7 * 24 * HOUR_MS
    )
    assert (
        window_start_ms(ReportPeriod.MONTHLY, NOON_MS, UTC_ZONE)
        == MIDNIGHT_MS - 30 * 24 * HOUR_MS
    )


def test_window_start_respects_timezone() -> None:
    sao_paulo = ZoneInfo("America/Sao_Paulo")

    # Noon UTC is 09:00 in Sao Paulo (UTC-3), so local midnight is 03:00 UTC.
    start = window_start_ms(ReportPeriod.DAILY, NOON_MS, sao_paulo)

    assert start == MIDNIGHT_MS + 3 * HOUR_MS


def test_daily_rollup_excludes_session_started_yesterday() -> None:
    users = [make_user("m1"), make_user("m2")]
    book = time_tracking.start(
        SessionBook(), "m1", "M1", "old", now_ms=MIDNIGHT_MS - HOUR_MS
    )
    book = time_tracking.start(book, "m2", "M2", "today", now_ms=MIDNIGHT_MS + HOUR_MS)

    rollups = mechanic_time_rollup(
        users, book, ReportPeriod.DAILY, NOON_MS, UTC_ZONE
    )

    by_id = {rollup.mechanic_id: rollup for rollup in rollups}
    assert by_id["m1"].total_ms == 0
    assert by_id["m1"].session_count == 0
    assert by_id["m1"].has_open_session is True
    assert by_id["m2"].total_ms == 11 * HOUR_MS
    assert [rollup.mechanic_id for rollup in rollups] == ["m2", "m1"]


def test_weekly_rollup_sums_live_durations() -> None:
    book = SessionBook()
    book = time_tracking.start(book, "m1", "M1", "a", now_ms=MIDNIGHT_MS - 48 * HOUR_MS)
    book = time_tracking.stop_for(book, "m1", now_ms=MIDNIGHT_MS - 46 * HOUR_MS)
    book = time_tracking.start(book, "m1", "M1", "b", now_ms=NOON_MS - HOUR_MS)

    (rollup,) = mechanic_time_rollup(
        [make_user("m1")], book, ReportPeriod.WEEKLY, NOON_MS, UTC_ZONE
    )

    assert rollup.total_ms == 3 * HOUR_MS
    assert rollup.session_count == 2


def test_revenue_rollup() -> None:
    records = [_record("m1", 115.0, 15.0), _record("m2", 230.0, 30.0)]

    total = revenue_rollup(records)
    mine = revenue_rollup(records, mechanic_id="m1")
    empty = revenue_rollup([])

    assert (total.total_revenue, total.total_tax, total.count) == (345.0, 45.0, 2)
    assert total.average_ticket == 172.5
    assert mine.count == 1
    assert mine.total_revenue == 115.0
    assert empty.average_ticket == 0.0


def test_workshop_overview_counts_staff_and_open_sessions() -> None:
    state = make_state(make_user("m1"), make_user("m2"), make_user("x", "w2"))
    workshop = state.workshops["w1"]
    workshop = replace(
        workshop,
        history=(_record("m1", 100.0, 10.0),),
        sessions=time_tracking.start(SessionBook(), "m1", "M1", "s", now_ms=0),
    )
    state = replace(state, workshops={"w1": workshop})

    (overview,) = workshop_overview(state)

    assert overview.total_revenue == 100.0
    assert overview.staff_count == 2
    assert overview.open_sessions == 1


def test_report_service_uses_store(store) -> None:
    service = ReportService(store)
    store.dispatch(StartSession("w1", "m1"))
    store.clock.advance(HOUR_MS)

    rollups = service.time_rollup("w1", ReportPeriod.DAILY)

    assert rollups is not None
    assert rollups[0].mechanic_id == "m1"
    assert rollups[0].total_ms == HOUR_MS
    assert service.time_rollup("missing", ReportPeriod.DAILY) is None
    assert service.revenue("missing") is None
    assert service.revenue("w1").count == 0


def test_search_services_matches_people_fields_newest_first() -> None:
    older = replace(
        _record("m1", 100.0, 10.0),
        id="r1",
        customer_name="Maria",
        customer_id="77",
        timestamp=1,
    )
    newer = replace(
        _record("m2", 200.0, 20.0),
        id="r2",
        mechanic_name="Bob",
        authorized_by="Chief",
        timestamp=2,
    )
    records = [older, newer]

    assert [r.id for r in search_services(records)] == ["r2", "r1"]
    assert [r.id for r in search_services(records, "maria")] == ["r1"]
    assert [r.id for r in search_services(records, "77")] == ["r1"]
    assert [r.id for r in search_services(records, "BOB")] == ["r2"]
    assert [r.id for r in search_services(records, "chief")] == ["r2"]
    assert [r.id for r in search_services(records, "", mechanic_id="m1")] == ["r1"]
    assert search_services(records, "chief", mechanic_id="m1") == []


def test_report_service_searches_history(store) -> None:
    workshop = store.workshop("w1")
    history = tuple(
        replace(_record("m1", 10.0, 1.0), id=f"r{i}", timestamp=i) for i in range(3)
    )
    store.replace(
        replace(store.state, workshops={"w1": replace(workshop, history=history)})
    )
    service = ReportService(store)

    assert [r.id for r in service.services("w1", limit=2)] == ["r2", "r1"]
    assert service.services("missing") is None
