"""Tests for the snapshot poller."""

import asyncio

from tests.conftest import make_state, make_user
from workshop_manager.services.store import StartSession, SyncStatus
from workshop_manager.services.sync import SnapshotPoller


def test_poll_replaces_local_state(store) -> None:
    remote = make_state(make_user("m9"))
    store.repository.stored = remote
    poller = SnapshotPoller(store, interval_seconds=0.01)

    status = asyncio.run(poller.poll_once())

    assert status is SyncStatus.ONLINE
    assert store.state is remote


def test_poll_failure_marks_error(store) -> None:
    store.repository.fail_fetch = True
    local = store.state
    poller = SnapshotPoller(store, interval_seconds=0.01)

    assert asyncio.run(poller.poll_once()) is SyncStatus.ERROR
    assert store.state is local


def test_empty_remote_is_seeded_with_local_state(store) -> None:
    poller = SnapshotPoller(store, interval_seconds=0.01)

    status = asyncio.run(poller.poll_once())

    assert status is SyncStatus.ONLINE
    assert store.repository.stored is store.state


def test_hidden_client_does_not_poll(store) -> None:
    store.repository.stored = make_state()
    poller = SnapshotPoller(store, interval_seconds=0.01)
    poller.set_visible(False)

    assert asyncio.run(poller.poll_once()) is SyncStatus.OFFLINE
    assert "m1" in store.state.users


def test_remote_snapshot_wins_over_local_change(store) -> None:
    store.dispatch(StartSession("w1", "m1"))
    store.repository.stored = make_state(make_user("m1"))
    poller = SnapshotPoller(store, interval_seconds=0.01)

    asyncio.run(poller.poll_once())

    assert store.state.workshops["w1"].sessions.open == {}


def test_start_and_stop_background_task(store) -> None:
    store.repository.stored = make_state(make_user("m3"))
    poller = SnapshotPoller(store, interval_seconds=0.01)

    async def scenario() -> None:
        poller.start()
        await asyncio.sleep(0.05)
        await poller.stop()

    asyncio.run(scenario())

    assert "m3" in store.state.users
    assert poller._task is None
