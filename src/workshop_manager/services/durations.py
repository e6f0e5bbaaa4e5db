"""Worked-time arithmetic for work sessions."""

from workshop_manager.domain.sessions import SessionStatus, WorkSession

_MS_PER_SECOND = 1000
_MS_PER_MINUTE = 60 * _MS_PER_SECOND
_MS_PER_HOUR = 60 * _MS_PER_MINUTE


def session_duration_ms(session: WorkSession, now_ms: int) -> int:
    """Return on-duty milliseconds for a session at ``now_ms``.

    Completed sessions are measured to ``end_time``, active ones to ``now_ms``
    and paused ones to the start of their latest pause. Closed pauses are
    subtracted afterwards; the open pause is already excluded by the cut-off.
    ``now_ms`` is ignored once the session is completed.
    """
    if session.status is SessionStatus.COMPLETED:
        total = (session.end_time or session.start_time) - session.start_time
    elif session.status is SessionStatus.PAUSED and session.pauses:
        total = session.pauses[-1].start - session.start_time
    else:
        total = now_ms - session.start_time

    for pause in session.pauses:
        if pause.end is not None:
            total -= pause.end - pause.start

    return max(0, total)


def format_clock(duration_ms: int) -> str:
    """Format milliseconds as HH:MM:SS for live timers."""
    hours = duration_ms // _MS_PER_HOUR
    minutes = (duration_ms // _MS_PER_MINUTE) % 60
    seconds = (duration_ms // _MS_PER_SECOND) % 60
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_hours_minutes(duration_ms: int) -> str:
    """Format milliseconds as a compact ``Xh Ym`` label."""
    hours = duration_ms // _MS_PER_HOUR
    minutes = (duration_ms // _MS_PER_MINUTE) % 60
    return f"{hours}h {minutes}m"
