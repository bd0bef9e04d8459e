"""Tests for scheduled-session expansion."""

from datetime import date

from caseload.core.session_calendar import (
    expand_occurrences,
    js_weekday,
    occurrence_dates,
    occurrence_end_time,
)
from caseload.db.scheduled_sessions_repository import ScheduledSessionRecord
from caseload.db.sessions_repository import SessionRecord

STAMP = "2024-09-01T00:00:00.000Z"
WEEK_START = date(2024, 11, 4)  # Monday
WEEK_END = date(2024, 11, 10)


def _scheduled(scheduled_id="sched-1", **kwargs):
    base = dict(
        id=scheduled_id,
        start_time="09:00",
        start_date="2024-09-01",
        date_created=STAMP,
        date_updated=STAMP,
        student_ids=["student-1"],
        day_of_week=[1, 3],
    )
    base.update(kwargs)
    return ScheduledSessionRecord(**base)


class TestTimes:
    """Weekday numbering and end times."""

    def test_sunday_is_zero(self):
        assert js_weekday(date(2024, 11, 3)) == 0
        assert js_weekday(WEEK_START) == 1
        assert js_weekday(date(2024, 11, 9)) == 6

    def test_end_time_sources(self):
        assert occurrence_end_time(_scheduled(end_time="09:20")) == "09:20"
        assert occurrence_end_time(_scheduled(duration=45)) == "09:45"
        assert occurrence_end_time(_scheduled()) == "09:30"
        assert occurrence_end_time(_scheduled(start_time="23:45", duration=30)) == "00:15"


class TestOccurrenceDates:
    """Recurrence patterns."""

    def test_weekly_on_chosen_days(self):
        dates = occurrence_dates(_scheduled(), WEEK_START, WEEK_END)
        assert dates == [date(2024, 11, 4), date(2024, 11, 6)]

    def test_cancelled_dates_are_removed(self):
        dates = occurrence_dates(_scheduled(cancelled_dates=["2024-11-06"]), WEEK_START, WEEK_END)
        assert dates == [date(2024, 11, 4)]

    def test_daily_clipped_to_own_range(self):
        scheduled = _scheduled(
            recurrence_pattern="daily", start_date="2024-11-06", end_date="2024-11-08"
        )
        dates = occurrence_dates(scheduled, WEEK_START, WEEK_END)
        assert dates == [date(2024, 11, 6), date(2024, 11, 7), date(2024, 11, 8)]

    def test_specific_dates(self):
        scheduled = _scheduled(
            recurrence_pattern="specific-dates",
            specific_dates=["2024-11-09", "2024-11-05", "2024-12-01"],
        )
        dates = occurrence_dates(scheduled, WEEK_START, WEEK_END)
        assert dates == [date(2024, 11, 5), date(2024, 11, 9)]

    def test_one_off_uses_start_date(self):
        scheduled = _scheduled(recurrence_pattern="none", start_date="2024-11-07")
        assert occurrence_dates(scheduled, WEEK_START, WEEK_END) == [date(2024, 11, 7)]

    def test_schedule_ending_before_window(self):
        scheduled = _scheduled(end_date="2024-10-31")
        assert occurrence_dates(scheduled, WEEK_START, WEEK_END) == []


class TestExpandOccurrences:
    """Occurrence flags and ordering."""

    def test_inactive_schedules_are_skipped(self):
        assert expand_occurrences([_scheduled(active=False)], WEEK_START, WEEK_END) == []

    def test_overlapping_schedules_conflict(self):
        morning = _scheduled("sched-a", duration=30)
        overlap = _scheduled("sched-b", start_time="09:15", day_of_week=[1])
        later = _scheduled("sched-c", start_time="09:30", day_of_week=[1])

        occurrences = expand_occurrences([later, overlap, morning], WEEK_START, WEEK_END)
        monday = {o.scheduled_session_id: o for o in occurrences if o.date == "2024-11-04"}

        assert monday["sched-a"].has_conflict
        assert monday["sched-b"].has_conflict
        assert monday["sched-c"].has_conflict
        assert [o.start_time for o in occurrences][:3] == ["09:00", "09:15", "09:30"]

    def test_back_to_back_is_not_a_conflict(self):
        first = _scheduled("sched-a", day_of_week=[1])
        second = _scheduled("sched-b", start_time="09:30", day_of_week=[1])

        occurrences = expand_occurrences([first, second], WEEK_START, WEEK_END)
        assert not any(o.has_conflict for o in occurrences)

    def test_logged_and_missed_flags(self):
        logged = [
            SessionRecord(
                id="s-1", student_id="student-1", date="2024-11-04T09:00:00Z",
                scheduled_session_id="sched-1",
            ),
            SessionRecord(
                id="s-2", student_id="student-1", date="2024-11-06",
                scheduled_session_id="sched-1", missed_session=True,
            ),
        ]
        occurrences = expand_occurrences([_scheduled()], WEEK_START, WEEK_END, logged)

        assert [(o.is_logged, o.is_missed) for o in occurrences] == [(True, False), (True, True)]
        assert occurrences[0].id == "sched-1-2024-11-04"
