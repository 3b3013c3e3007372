"""
Tests for visitor upsert and session reconstruction through the tracker.
"""

import threading
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from visitor_engine import (
    CLOSED_BY_NEXT_EVENT,
    CLOSED_BY_TIMEOUT,
    AnalyticsStore,
    PageViewTracker,
    StoreError,
)
from visitor_engine.models import TrackRequest

T0 = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)
CHROME_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def visit(path, ip="203.0.113.7", user_agent=CHROME_UA, **kwargs):
    return TrackRequest(path=path, user_agent=user_agent, ip_address=ip, **kwargs)


@pytest.fixture
def store(tmp_path):
    return AnalyticsStore(tmp_path)


@pytest.fixture
def tracker(store):
    return PageViewTracker(store)


def only_visitor(store):
    visitors = list(store.snapshot().visitors.values())
    assert len(visitors) == 1
    return visitors[0]


class TestScenarios:
    """A visitor browsing, pausing and coming back."""

    def test_first_event_creates_visitor_session_and_page_view(self, tracker, store):
        result = tracker.track_page_view(visit("/"), now=T0)
        assert result.success

        snapshot = store.snapshot()
        visitor = only_visitor(store)
        assert visitor.id == result.visitor_id
        assert visitor.total_visits == 1
        assert visitor.total_page_views == 1
        assert visitor.first_visit_at == T0

        session = snapshot.sessions[result.session_id]
        assert session.entry_page == "/"
        assert session.page_view_count == 1
        assert session.is_open
        assert len(snapshot.page_views) == 1

    def test_event_within_timeout_continues_session(self, tracker, store):
        first = tracker.track_page_view(visit("/"), now=T0)
        second = tracker.track_page_view(visit("/cars"), now=T0 + timedelta(minutes=5))

        assert second.session_id == first.session_id
        session = store.snapshot().sessions[first.session_id]
        assert session.page_view_count == 2
        assert session.last_activity_at == T0 + timedelta(minutes=5)
        assert session.last_page == "/cars"

        visitor = only_visitor(store)
        assert visitor.total_page_views == 2
        assert visitor.total_visits == 1

    def test_event_after_timeout_closes_session_and_opens_new_one(self, tracker, store):
        first = tracker.track_page_view(visit("/"), now=T0)
        tracker.track_page_view(visit("/cars"), now=T0 + timedelta(minutes=5))
        third = tracker.track_page_view(visit("/dealers"), now=T0 + timedelta(minutes=40))

        assert third.session_id != first.session_id
        snapshot = store.snapshot()

        closed = snapshot.sessions[first.session_id]
        assert closed.ended_at == T0 + timedelta(minutes=5)
        assert closed.exit_page == "/cars"
        assert closed.page_view_count == 2
        assert closed.bounced is False
        assert closed.duration_ms == 5 * 60 * 1000
        assert closed.close_reason == CLOSED_BY_NEXT_EVENT

        current = snapshot.sessions[third.session_id]
        assert current.entry_page == "/dealers"
        assert current.page_view_count == 1
        assert current.is_open

        visitor = only_visitor(store)
        assert visitor.total_visits == 2
        assert visitor.total_page_views == 3

    def test_single_page_visit_stays_open_without_follow_up(self, tracker, store):
        result = tracker.track_page_view(visit("/"), now=T0)

        session = store.snapshot().sessions[result.session_id]
        assert session.is_open
        assert session.ended_at is None
        assert session.bounced is False

    def test_single_page_session_closed_by_next_event_is_bounced(self, tracker, store):
        first = tracker.track_page_view(visit("/"), now=T0)
        tracker.track_page_view(visit("/"), now=T0 + timedelta(hours=2))

        closed = store.snapshot().sessions[first.session_id]
        assert closed.bounced is True
        assert closed.duration_ms == 0
        assert closed.exit_page == "/"


class TestTimeoutBoundary:
    """The timeout is strict: exactly at the limit still continues."""

    def test_exactly_at_timeout_continues(self, tracker):
        first = tracker.track_page_view(visit("/"), now=T0)
        second = tracker.track_page_view(visit("/a"), now=T0 + timedelta(minutes=30))
        assert first.session_id == second.session_id

    def test_just_past_timeout_starts_new_session(self, tracker):
        first = tracker.track_page_view(visit("/"), now=T0)
        second = tracker.track_page_view(visit("/a"), now=T0 + timedelta(minutes=30, seconds=1))
        assert first.session_id != second.session_id

    def test_custom_timeout(self, store):
        tracker = PageViewTracker(store, session_timeout=timedelta(minutes=5))
        first = tracker.track_page_view(visit("/"), now=T0)
        second = tracker.track_page_view(visit("/a"), now=T0 + timedelta(minutes=6))
        assert first.session_id != second.session_id


class TestInvariants:
    """Counters and session state stay consistent over many events."""

    def test_counters_match_stored_rows(self, tracker, store):
        offsets = [0, 3, 10, 50, 55, 200, 201, 202, 500]
        for i, minutes in enumerate(offsets):
            tracker.track_page_view(visit(f"/page/{i}"), now=T0 + timedelta(minutes=minutes))

        snapshot = store.snapshot()
        visitor = only_visitor(store)
        sessions = snapshot.sessions_for(visitor.id)

        assert visitor.total_page_views == len(snapshot.page_views) == len(offsets)
        assert visitor.total_visits == len(sessions) == 4
        assert sum(s.page_view_count for s in sessions) == len(offsets)
        assert sum(1 for s in sessions if s.is_open) == 1

        for session in sessions:
            if not session.is_open:
                assert session.bounced == (session.page_view_count <= 1)
                expected_ms = (session.last_activity_at - session.started_at).total_seconds() * 1000
                assert session.duration_ms == int(expected_ms)

    def test_page_views_link_visitor_and_session(self, tracker, store):
        result = tracker.track_page_view(visit("/", title="Home", referrer="https://example.com"), now=T0)

        page_view = store.snapshot().page_views[0]
        assert page_view.visitor_id == result.visitor_id
        assert page_view.session_id == result.session_id
        assert page_view.title == "Home"
        assert page_view.referrer == "https://example.com"
        assert page_view.viewed_at == T0

    def test_distinct_fingerprints_get_distinct_visitors(self, tracker, store):
        a = tracker.track_page_view(visit("/", ip="10.0.0.1"), now=T0)
        b = tracker.track_page_view(visit("/", ip="10.0.0.2"), now=T0)

        assert a.visitor_id != b.visitor_id
        assert a.session_id != b.session_id
        assert len(store.snapshot().visitors) == 2

    def test_out_of_order_event_does_not_move_activity_backwards(self, tracker, store):
        first = tracker.track_page_view(visit("/"), now=T0 + timedelta(minutes=10))
        tracker.track_page_view(visit("/late"), now=T0 + timedelta(minutes=5))

        session = store.snapshot().sessions[first.session_id]
        assert session.last_activity_at == T0 + timedelta(minutes=10)
        assert only_visitor(store).last_visit_at == T0 + timedelta(minutes=10)

    def test_concurrent_events_share_one_session(self, tracker, store):
        """Racing events for one fingerprint never open two sessions."""
        results = []
        results_lock = threading.Lock()

        def worker(i):
            result = tracker.track_page_view(visit(f"/p{i}"), now=T0)
            with results_lock:
                results.append(result)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert all(r.success for r in results)
        assert len({r.session_id for r in results}) == 1

        snapshot = store.snapshot()
        visitor = only_visitor(store)
        assert visitor.total_visits == 1
        assert visitor.total_page_views == 10
        assert len(snapshot.sessions) == 1
        assert len(snapshot.page_views) == 10


class TestAllOrNothing:
    """A failed event leaves no partial writes."""

    def test_failed_save_records_nothing(self, tracker, store):
        with patch.object(store, "_save_snapshot", side_effect=StoreError("disk full")):
            result = tracker.track_page_view(visit("/"), now=T0)

        assert not result.success
        assert isinstance(result.error, StoreError)
        snapshot = store.snapshot()
        assert snapshot.visitors == {}
        assert snapshot.sessions == {}
        assert snapshot.page_views == []

    def test_failed_commit_keeps_counters_and_rows_in_step(self, tracker, store):
        tracker.track_page_view(visit("/"), now=T0)

        with patch("visitor_engine.store.os.replace", side_effect=OSError("disk full")):
            result = tracker.track_page_view(visit("/cars"), now=T0 + timedelta(minutes=5))

        assert not result.success
        snapshot = store.snapshot()
        visitor = only_visitor(store)
        assert visitor.total_page_views == len(snapshot.page_views) == 1
        assert list(snapshot.sessions.values())[0].page_view_count == 1

    def test_failed_page_view_append_rolls_back_visitor_and_session(self, tracker, store):
        tracker.track_page_view(visit("/"), now=T0)

        with patch.object(tracker.page_view_recorder, "record", side_effect=RuntimeError("boom")):
            result = tracker.track_page_view(visit("/next"), now=T0 + timedelta(hours=1))

        assert not result.success
        snapshot = store.snapshot()
        visitor = only_visitor(store)
        assert visitor.total_page_views == 1
        assert visitor.total_visits == 1
        assert len(snapshot.sessions) == 1
        assert len(snapshot.page_views) == 1
        assert all(s.is_open for s in snapshot.sessions.values())


class TestStaleSessionSweep:
    """Timeout sweep closes abandoned sessions."""

    def test_sweep_closes_expired_sessions(self, tracker, store):
        result = tracker.track_page_view(visit("/"), now=T0)

        closed = tracker.session_reconstructor.close_stale_sessions(store, now=T0 + timedelta(minutes=31))

        assert closed == 1
        session = store.snapshot().sessions[result.session_id]
        assert session.ended_at == T0
        assert session.bounced is True
        assert session.exit_page == "/"
        assert session.close_reason == CLOSED_BY_TIMEOUT

    def test_sweep_leaves_active_sessions_open(self, tracker, store):
        result = tracker.track_page_view(visit("/"), now=T0)

        closed = tracker.session_reconstructor.close_stale_sessions(store, now=T0 + timedelta(minutes=10))

        assert closed == 0
        assert store.snapshot().sessions[result.session_id].is_open

    def test_sweep_is_idempotent(self, tracker, store):
        tracker.track_page_view(visit("/"), now=T0)
        later = T0 + timedelta(hours=1)

        assert tracker.session_reconstructor.close_stale_sessions(store, now=later) == 1
        assert tracker.session_reconstructor.close_stale_sessions(store, now=later) == 0

    def test_event_after_sweep_opens_new_visit(self, tracker, store):
        first = tracker.track_page_view(visit("/"), now=T0)
        tracker.session_reconstructor.close_stale_sessions(store, now=T0 + timedelta(hours=1))

        second = tracker.track_page_view(visit("/back"), now=T0 + timedelta(hours=2))

        assert second.session_id != first.session_id
        swept = store.snapshot().sessions[first.session_id]
        assert swept.close_reason == CLOSED_BY_TIMEOUT
        assert only_visitor(store).total_visits == 2
