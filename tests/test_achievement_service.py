# tests/test_achievement_service.py
from datetime import datetime, timezone

import pytest

from dbkompare.core.errors import ValidationError
from dbkompare.services.achievement_service import (
    AchievementTracker,
    Counter,
    Notification,
    days_between,
    next_consecutive_days,
    parse_iso,
    to_iso,
)
from tests.conftest import USER_ID


@pytest.fixture
def tracker(store, clock):
    return AchievementTracker(store, clock)


def counter(store, name):
    item = store.get_item(store.tables.achievements, {"userId": USER_ID, "sortKey": name})
    return item["value"] if item else None


def events(store, event_type):
    return [
        item for item in store.items(store.tables.achievements)
        if item["sortKey"].startswith(f"EVENT#{event_type}#")
    ]


class TestHelpers:

    def test_iso_timestamps_use_millis_and_z(self):
        moment = datetime(2026, 10, 19, 14, 5, 3, 123456, tzinfo=timezone.utc)
        assert to_iso(moment) == "2026-10-19T14:05:03.123Z"
        assert parse_iso("2026-10-19T14:05:03.123Z") == datetime(2026, 10, 19, 14, 5, 3, 123000,
                                                                 tzinfo=timezone.utc)

    def test_days_between_ignores_time_of_day(self):
        late = datetime(2026, 10, 19, 23, 59, tzinfo=timezone.utc)
        early = datetime(2026, 10, 20, 0, 1, tzinfo=timezone.utc)
        assert days_between(late, early) == 1

    @pytest.mark.parametrize("current, days_since, expected", [
        (0, None, 1),
        (4, 0, 4),
        (4, 1, 5),
        (4, 2, 1),
        (4, -1, 1),
    ])
    def test_next_consecutive_days(self, current, days_since, expected):
        assert next_consecutive_days(current, days_since) == expected


class TestLogin:

    def test_first_login_starts_count(self, tracker, store):
        result = tracker.process_event(USER_ID, "LOGIN")

        assert result == {"eventType": "LOGIN", "consecutiveDays": 1, "streakEarned": False}
        assert counter(store, Counter.CONSEC_DAYS) == 1
        assert len(events(store, "LOGIN")) == 1

    def test_same_day_login_keeps_count(self, tracker, store, clock):
        tracker.process_event(USER_ID, "LOGIN")
        clock.advance(hours=5)
        result = tracker.process_event(USER_ID, "LOGIN")

        assert result["consecutiveDays"] == 1
        assert len(events(store, "LOGIN")) == 2

    def test_gap_resets_count(self, tracker, store, clock):
        tracker.process_event(USER_ID, "LOGIN")
        clock.advance(days=1)
        tracker.process_event(USER_ID, "LOGIN")
        clock.advance(days=2)
        result = tracker.process_event(USER_ID, "LOGIN")

        assert result["consecutiveDays"] == 1
        assert counter(store, Counter.CONSEC_DAYS) == 1

    def test_streak_point_every_three_consecutive_days(self, tracker, store, clock):
        results = []
        for _ in range(6):
            results.append(tracker.process_event(USER_ID, "LOGIN"))
            clock.advance(days=1)

        assert [r["consecutiveDays"] for r in results] == [1, 2, 3, 4, 5, 6]
        assert [r["streakEarned"] for r in results] == [False, False, True, False, False, True]
        assert counter(store, Counter.STREAK) == 2
        assert counter(store, Counter.XP) == 20
        assert [e["reason"] for e in events(store, "XP")] == ["Streak point earned"] * 2

    def test_login_schedules_streak_notifications(self, tracker, store):
        tracker.process_event(USER_ID, "LOGIN")

        remind = store.get_item(store.tables.achievements, {"userId": USER_ID, "sortKey": Notification.STREAK_REMIND})
        brk = store.get_item(store.tables.achievements, {"userId": USER_ID, "sortKey": Notification.STREAK_BREAK})
        assert remind["nextNotifyAt"] == "2026-10-22T11:05:03.000Z"
        assert brk["nextNotifyAt"] == "2026-10-23T11:05:03.000Z"
        assert remind["sent"] is False


class TestCounters:

    def test_xp_and_gems_accumulate(self, tracker, store, clock):
        tracker.process_event(USER_ID, "XP", delta=15)
        clock.advance(seconds=1)
        tracker.process_event(USER_ID, "XP", delta=5, reason="Quiz completed")
        result = tracker.process_event(USER_ID, "GEMS", delta=3)

        assert result == {"eventType": "GEMS", "value": 3}
        assert counter(store, Counter.XP) == 20
        assert len(events(store, "XP")) == 2

    @pytest.mark.parametrize("event_type, delta", [
        ("XP", None),
        ("XP", 0),
        ("GEMS", -2),
        ("GEMS", "4"),
        ("BADGE", 1),
        (None, 1),
    ])
    def test_rejects_invalid_events(self, tracker, event_type, delta):
        with pytest.raises(ValidationError):
            tracker.process_event(USER_ID, event_type, delta=delta)

    def test_award_xp_validates_amount(self, tracker):
        with pytest.raises(ValidationError, match="xpAmount"):
            tracker.award_xp(USER_ID, 0)

    def test_metrics_default_to_zero(self, tracker):
        assert tracker.get_metrics(USER_ID) == {
            "userId": USER_ID, "xp": 0, "gems": 0, "streak": 0, "consecutiveDays": 0,
        }

    def test_metrics_reflect_counters(self, tracker, clock):
        tracker.award_xp(USER_ID, 40)
        tracker.process_event(USER_ID, "LOGIN")
        metrics = tracker.get_metrics(USER_ID)
        assert metrics["xp"] == 40
        assert metrics["consecutiveDays"] == 1
