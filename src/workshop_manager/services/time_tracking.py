"""Session state machine for mechanic shifts.

Every function here is pure: it receives a value and returns a new one.
A transition that does not apply to the current state returns its input
unchanged, so callers can detect a no-op with an identity check.
"""

from collections.abc import Callable
from dataclasses import replace

from workshop_manager.domain.sessions import (
    PauseInterval,
    SessionBook,
    SessionStatus,
    WorkSession,
)


def open_session(
    session_id: str, mechanic_id: str, mechanic_name: str, now_ms: int
) -> WorkSession:
    """Create a new active session."""
    return WorkSession(
        id=session_id,
        mechanic_id=mechanic_id,
        mechanic_name=mechanic_name,
        start_time=now_ms,
        status=SessionStatus.ACTIVE,
    )


def pause(session: WorkSession, now_ms: int) -> WorkSession:
    """Move an active session to paused and open a pause interval."""
    if session.status is not SessionStatus.ACTIVE:
        return session
    return replace(
        session,
        status=SessionStatus.PAUSED,
        pauses=(*session.pauses, PauseInterval(start=now_ms)),
    )


def resume(session: WorkSession, now_ms: int) -> WorkSession:
    """Close the running pause and make the session active again."""
    if session.status is not SessionStatus.PAUSED:
        return session
    return replace(
        session,
        status=SessionStatus.ACTIVE,
        pauses=_close_last_pause(session.pauses, now_ms),
    )


def complete(session: WorkSession, now_ms: int) -> WorkSession:
    """Finish a session, closing a running pause first."""
    if session.status is SessionStatus.COMPLETED:
        return session
    pauses = session.pauses
    if session.status is SessionStatus.PAUSED:
        pauses = _close_last_pause(pauses, now_ms)
    return replace(
        session,
        status=SessionStatus.COMPLETED,
        pauses=pauses,
        end_time=now_ms,
    )


def current_session(book: SessionBook, mechanic_id: str) -> WorkSession | None:
    """Return the mechanic's open session, if any."""
    return book.open.get(mechanic_id)


def all_sessions(book: SessionBook) -> list[WorkSession]:
    """Return every session, newest start first."""
    sessions = [*book.open.values(), *book.closed]
    return sorted(sessions, key=lambda session: session.start_time, reverse=True)


def history_for(book: SessionBook, mechanic_id: str) -> list[WorkSession]:
    """Return a mechanic's completed sessions, newest start first."""
    sessions = [s for s in book.closed if s.mechanic_id == mechanic_id]
    return sorted(sessions, key=lambda session: session.start_time, reverse=True)


def start(
    book: SessionBook,
    mechanic_id: str,
    mechanic_name: str,
    session_id: str,
    now_ms: int,
) -> SessionBook:
    """Open a session for a mechanic unless one is already open."""
    if mechanic_id in book.open:
        return book
    created = open_session(session_id, mechanic_id, mechanic_name, now_ms)
    return replace(book, open={**book.open, mechanic_id: created})


def pause_for(book: SessionBook, mechanic_id: str, now_ms: int) -> SessionBook:
    """Pause the mechanic's open session."""
    return _apply(book, mechanic_id, lambda session: pause(session, now_ms))


def resume_for(book: SessionBook, mechanic_id: str, now_ms: int) -> SessionBook:
    """Resume the mechanic's paused session."""
    return _apply(book, mechanic_id, lambda session: resume(session, now_ms))


def stop_for(book: SessionBook, mechanic_id: str, now_ms: int) -> SessionBook:
    """Complete the mechanic's open session and archive it."""
    session = book.open.get(mechanic_id)
    if session is None:
        return book
    finished = complete(session, now_ms)
    remaining = {key: value for key, value in book.open.items() if key != mechanic_id}
    return SessionBook(open=remaining, closed=(*book.closed, finished))


def delete(book: SessionBook, session_ids: set[str]) -> SessionBook:
    """Remove sessions by id, open or closed."""
    if not session_ids:
        return book
    remaining_open = {
        key: value for key, value in book.open.items() if value.id not in session_ids
    }
    remaining_closed = tuple(s for s in book.closed if s.id not in session_ids)
    if len(remaining_open) == len(book.open) and len(remaining_closed) == len(
        book.closed
    ):
        return book
    return SessionBook(open=remaining_open, closed=remaining_closed)


def _apply(
    book: SessionBook,
    mechanic_id: str,
    transition: Callable[[WorkSession], WorkSession],
) -> SessionBook:
    session = book.open.get(mechanic_id)
    if session is None:
        return book
    updated = transition(session)
    if updated is session:
        return book
    return replace(book, open={**book.open, mechanic_id: updated})


def _close_last_pause(
    pauses: tuple[PauseInterval, ...], now_ms: int
) -> tuple[PauseInterval, ...]:
    if not pauses or not pauses[-1].is_open:
        return pauses
    return (*pauses[:-1], replace(pauses[-1], end=now_ms))
