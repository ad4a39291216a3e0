"""Tests for endpoint health tracking and scoring."""

import pytest

from shopfloor.webhooks import HealthTracker


@pytest.fixture
def tracker():
    return HealthTracker(failure_threshold=5)


class TestHealthRecord:
    """Tests for HealthTracker.record()."""

    def test_first_success_creates_stats(self, tracker):
        tracker.record("whk_1", True, 120)

        stats = tracker.get("whk_1")
        assert stats.total_calls == 1
        assert stats.success_count == 1
        assert stats.failure_count == 0
        assert stats.consecutive_failures == 0
        assert stats.last_success is not None
        assert stats.last_failure is None
        assert stats.average_latency_ms == 120

    def test_average_latency_counts_successes_only(self, tracker):
        tracker.record("whk_1", True, 100)
        tracker.record("whk_1", False, 10_000)
        tracker.record("whk_1", True, 300)

        assert tracker.get("whk_1").average_latency_ms == pytest.approx(200)

    def test_success_resets_consecutive_failures(self, tracker):
        tracker.record("whk_1", False, 0)
        tracker.record("whk_1", False, 0)
        tracker.record("whk_1", True, 50)

        stats = tracker.get("whk_1")
        assert stats.consecutive_failures == 0
        assert stats.failure_count == 2

    def test_should_disable_at_threshold(self, tracker):
        signals = [tracker.record("whk_1", False, 0) for _ in range(5)]

        assert [s.should_disable for s in signals] == [False, False, False, False, True]
        assert signals[-1].consecutive_failures == 5

    def test_should_disable_with_good_score(self, tracker):
        """A long successful history keeps the score above the gate."""
        for _ in range(95):
            tracker.record("whk_1", True, 10)
        signal = None
        for _ in range(5):
            signal = tracker.record("whk_1", False, 0)

        assert signal.should_disable is True
        assert tracker.score("whk_1") == 45

    def test_get_returns_copy(self, tracker):
        tracker.record("whk_1", True, 10)
        stats = tracker.get("whk_1")
        stats.total_calls = 999
        assert tracker.get("whk_1").total_calls == 1

    def test_get_unknown_endpoint(self, tracker):
        assert tracker.get("whk_unknown") is None


class TestHealthScore:
    """Tests for HealthTracker.score()."""

    def test_unknown_endpoint_scores_100(self, tracker):
        assert tracker.score("whk_new") == 100

    def test_all_successes_score_100(self, tracker):
        for _ in range(3):
            tracker.record("whk_1", True, 10)
        assert tracker.score("whk_1") == 100

    def test_score_formula(self, tracker):
        """80% success with 2 consecutive failures: 80 - 20 = 60."""
        for _ in range(8):
            tracker.record("whk_1", True, 10)
        tracker.record("whk_1", False, 0)
        tracker.record("whk_1", False, 0)

        assert tracker.score("whk_1") == 60

    def test_half_points_round_up(self, tracker):
        """5/8 success with no streak is 62.5, which scores 63."""
        for _ in range(3):
            tracker.record("whk_1", False, 0)
        for _ in range(5):
            tracker.record("whk_1", True, 10)

        assert tracker.score("whk_1") == 63

    def test_half_points_round_up_with_penalty(self, tracker):
        """5/8 success with one trailing failure: 62.5 - 10 = 52.5 scores 53."""
        for _ in range(2):
            tracker.record("whk_1", False, 0)
        for _ in range(5):
            tracker.record("whk_1", True, 10)
        tracker.record("whk_1", False, 0)

        assert tracker.score("whk_1") == 53

    def test_streak_penalty_capped_at_50(self, tracker):
        for _ in range(90):
            tracker.record("whk_1", True, 10)
        for _ in range(10):
            tracker.record("whk_1", False, 0)

        # 90% success, penalty min(100, 50)
        assert tracker.score("whk_1") == 40

    def test_score_floored_at_zero(self, tracker):
        for _ in range(3):
            tracker.record("whk_1", False, 0)
        assert tracker.score("whk_1") == 0

    def test_score_decreases_with_streak(self):
        """At a fixed 70% success rate, a longer trailing streak never raises the score."""
        scores = []
        for streak in range(0, 7):
            tracker = HealthTracker()
            for _ in range(6 - streak):
                tracker.record("whk_1", False, 0)
            for _ in range(14):
                tracker.record("whk_1", True, 10)
            for _ in range(streak):
                tracker.record("whk_1", False, 0)
            scores.append(tracker.score("whk_1"))

        assert scores == [70, 60, 50, 40, 30, 20, 20]

    def test_reset(self, tracker):
        tracker.record("whk_1", False, 0)
        tracker.reset("whk_1")

        assert tracker.get("whk_1") is None
        assert tracker.score("whk_1") == 100

    def test_snapshot(self, tracker):
        tracker.record("whk_1", True, 10)
        tracker.record("whk_2", False, 0)

        snapshot = tracker.snapshot()

        assert set(snapshot) == {"whk_1", "whk_2"}
        assert snapshot["whk_2"].consecutive_failures == 1
