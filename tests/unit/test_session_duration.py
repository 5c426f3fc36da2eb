"""Unit tests for effective session duration."""

import uuid
from datetime import UTC, datetime, timedelta

from readpulse.models.reading import ReadingSession
from readpulse.services.session_service import current_pause_seconds, effective_duration

START = datetime(2026, 3, 11, 10, 0, tzinfo=UTC)


def make_session(**fields) -> ReadingSession:
    values = {
        "user_id": uuid.uuid4(),
        "content_id": uuid.uuid4(),
        "content_type": "ebook",
        "start_time": START,
        "is_active": True,
        "is_paused": False,
        "paused_at": None,
        "total_paused_seconds": 0,
    }
    values.update(fields)
    return ReadingSession(**values)


class TestEffectiveDuration:
    """Test elapsed time minus pauses."""

    def test_never_paused(self):
        session = make_session()
        assert effective_duration(session, START + timedelta(minutes=5)) == 300

    def test_completed_pauses_are_subtracted(self):
        session = make_session(total_paused_seconds=120)
        assert effective_duration(session, START + timedelta(minutes=5)) == 180

    def test_open_pause_is_subtracted(self):
        session = make_session(is_paused=True, paused_at=START + timedelta(minutes=2))
        now = START + timedelta(minutes=5)

        assert current_pause_seconds(session, now) == 180
        assert effective_duration(session, now) == 120

    def test_fractional_seconds_are_floored(self):
        session = make_session()
        assert effective_duration(session, START + timedelta(seconds=59, milliseconds=999)) == 59

    def test_never_negative(self):
        # Paused total larger than elapsed, e.g. after clock skew between devices
        session = make_session(total_paused_seconds=600)
        assert effective_duration(session, START + timedelta(seconds=30)) == 0

        before_start = make_session()
        assert effective_duration(before_start, START - timedelta(seconds=5)) == 0

    def test_naive_timestamps_are_treated_as_utc(self):
        session = make_session(start_time=START.replace(tzinfo=None))
        assert effective_duration(session, START + timedelta(seconds=90)) == 90
