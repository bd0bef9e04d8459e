"""Expansion of scheduled sessions into dated calendar occurrences."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from caseload.db.helpers import parse_date
from caseload.db.scheduled_sessions_repository import ScheduledSessionRecord
from caseload.db.sessions_repository import SessionRecord

DEFAULT_DURATION_MINUTES = 30


@dataclass
class Occurrence:
    """One concrete instance of a scheduled session."""

    scheduled_session_id: str
    date: str
    start_time: str
    end_time: str
    student_ids: list[str] = field(default_factory=list)
    goals_targeted: list[str] = field(default_factory=list)
    is_direct_services: bool = True
    has_conflict: bool = False
    is_logged: bool = False
    is_missed: bool = False

    @property
    def id(self) -> str:
        return f"{self.scheduled_session_id}-{self.date}"


def js_weekday(day: date) -> int:
    """Weekday with Sunday = 0 ... Saturday = 6."""
    return (day.weekday() + 1) % 7


def _parse_hhmm(value: str) -> tuple[int, int]:
    hours, minutes = value.split(":")[:2]
    return int(hours), int(minutes)


def occurrence_end_time(scheduled: ScheduledSessionRecord) -> str:
    """End time: explicit, else start + duration, else start + 30 minutes."""
    if scheduled.end_time:
        return scheduled.end_time
    hours, minutes = _parse_hhmm(scheduled.start_time)
    start = datetime(2000, 1, 1, hours, minutes)
    end = start + timedelta(minutes=scheduled.duration or DEFAULT_DURATION_MINUTES)
    return end.strftime("%H:%M")


def occurrence_dates(
    scheduled: ScheduledSessionRecord, window_start: date, window_end: date
) -> list[date]:
    """Dates on which a scheduled session happens inside a window.

    The window is clipped to the session's own start/end dates, and
    cancelled dates are removed.
    """
    first = max(window_start, parse_date(scheduled.start_date) or window_start)
    own_end = parse_date(scheduled.end_date)
    last = min(window_end, own_end) if own_end else window_end
    if first > last:
        return []

    pattern = scheduled.recurrence_pattern
    dates: list[date] = []
    if pattern == "specific-dates":
        for raw in scheduled.specific_dates:
            day = parse_date(raw)
            if day is not None and first <= day <= last:
                dates.append(day)
        dates.sort()
    elif pattern == "none":
        start = parse_date(scheduled.start_date)
        if start is not None and first <= start <= last:
            dates.append(start)
    else:
        weekdays = set(scheduled.day_of_week)
        day = first
        while day <= last:
            if pattern == "daily" or js_weekday(day) in weekdays:
                dates.append(day)
            day += timedelta(days=1)

    cancelled = {d for d in (parse_date(c) for c in scheduled.cancelled_dates) if d}
    return [d for d in dates if d not in cancelled]


def _mark_conflicts(occurrences: list[Occurrence]) -> None:
    """Flag occurrences that overlap another one on the same date."""
    by_date: dict[str, list[Occurrence]] = {}
    for occ in occurrences:
        by_date.setdefault(occ.date, []).append(occ)

    for same_day in by_date.values():
        for i, a in enumerate(same_day):
            for b in same_day[i + 1 :]:
                if a.scheduled_session_id == b.scheduled_session_id:
                    continue
                if a.start_time < b.end_time and b.start_time < a.end_time:
                    a.has_conflict = True
                    b.has_conflict = True


def expand_occurrences(
    scheduled_sessions: list[ScheduledSessionRecord],
    window_start: date,
    window_end: date,
    logged_sessions: list[SessionRecord] | None = None,
) -> list[Occurrence]:
    """Expand scheduled sessions into occurrences within a date window.

    Args:
        scheduled_sessions: Active scheduled sessions
        window_start: First day of the window (inclusive)
        window_end: Last day of the window (inclusive)
        logged_sessions: Sessions already logged, used to mark occurrences
            as logged or missed

    Returns:
        Occurrences sorted by date and start time
    """
    logged: dict[tuple[str, str], list[SessionRecord]] = {}
    for session in logged_sessions or []:
        if session.scheduled_session_id:
            key = (session.scheduled_session_id, session.date[:10])
            logged.setdefault(key, []).append(session)

    occurrences = []
    for scheduled in scheduled_sessions:
        if not scheduled.active:
            continue
        end_time = occurrence_end_time(scheduled)
        for day in occurrence_dates(scheduled, window_start, window_end):
            matches = logged.get((scheduled.id, day.isoformat()), [])
            occurrences.append(
                Occurrence(
                    scheduled_session_id=scheduled.id,
                    date=day.isoformat(),
                    start_time=scheduled.start_time,
                    end_time=end_time,
                    student_ids=list(scheduled.student_ids),
                    goals_targeted=list(scheduled.goals_targeted),
                    is_direct_services=scheduled.is_direct_services,
                    is_logged=bool(matches),
                    is_missed=bool(matches) and all(s.missed_session for s in matches),
                )
            )

    _mark_conflicts(occurrences)
    occurrences.sort(key=lambda o: (o.date, o.start_time))
    return occurrences
