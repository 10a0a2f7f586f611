"""Tests for the dashboard aggregation functions and JournalAnalytics reports."""

from datetime import date, timezone

import pytest

from conftest import day_fields, make_entry
from mindcare.journal.journal_analytics import (
    JournalAnalytics,
    average_score,
    daily_trend,
    entries_to_frame,
    mood_distribution,
    most_common_mood,
    period_averages,
    period_breakdown,
    round1,
    weekly_activity,
)


def _entries(*pairs):
    """Newest-first entries from (score, mood) pairs, one day apart."""
    n = len(pairs)
    return [
        make_entry(score, mood, created_at=f"2026-10-{n - i:02d}T09:00:00+00:00", entry_id=f"e{i}")
        for i, (score, mood) in enumerate(pairs)
    ]


class TestRounding:

    @pytest.mark.parametrize("value,expected", [(6.65, 6.7), (6.6666, 6.7), (7.0, 7.0), (0.05, 0.1), (6.64, 6.6)])
    def test_round1_half_up(self, value, expected):
        assert round1(value) == expected


class TestAverageScore:

    def test_empty_is_zero(self):
        assert average_score([]) == 0

    def test_two_entries(self):
        assert average_score(_entries((6, "Happy"), (8, "Sad"))) == 7.0

    def test_rounds_to_one_decimal(self):
        assert average_score(_entries((7, "Happy"), (9, "Happy"), (4, "Sad"))) == 6.7

    def test_missing_score_fails_loudly(self):
        entry = make_entry()
        entry.overall_score = None
        with pytest.raises(TypeError):
            average_score([entry])

    def test_out_of_range_score_fails_loudly(self):
        with pytest.raises(ValueError):
            average_score([make_entry(score=11)])

    def test_non_entry_input_fails_loudly(self):
        with pytest.raises(TypeError):
            average_score([{"overall_score": 5}])


class TestMoodDistribution:

    def test_empty(self):
        assert mood_distribution([]) == []
        assert most_common_mood([]) is None

    def test_counts_and_percentages(self):
        dist = mood_distribution(_entries((7, "Happy"), (3, "Sad"), (8, "Happy")))
        assert dist == [
            {"mood": "Happy", "count": 2, "percentage": 66.7},
            {"mood": "Sad", "count": 1, "percentage": 33.3},
        ]

    def test_ties_keep_first_seen_order(self):
        dist = mood_distribution(_entries((5, "Sad"), (5, "Anxious"), (5, "Happy"), (5, "Anxious"), (5, "Sad")))
        assert [d["mood"] for d in dist] == ["Sad", "Anxious", "Happy"]

    @pytest.mark.parametrize("moods", [
        ["Happy"],
        ["Happy", "Sad", "Neutral"],
        ["Happy", "Sad", "Neutral", "Anxious", "Excited", "Stressed"],
        ["Happy"] * 5 + ["Sad"] * 2,
        ["Happy", "Sad", "Neutral", "Anxious", "Excited", "Stressed", "Angry", "Content", "Confused"],
    ])
    def test_percentages_total_100(self, moods):
        dist = mood_distribution(_entries(*[(5, m) for m in moods]))
        assert sum(d["percentage"] for d in dist) == pytest.approx(100.0, abs=0.1)
        assert sum(d["count"] for d in dist) == len(moods)

    def test_three_equal_moods_apportion_the_extra_tenth(self):
        dist = mood_distribution(_entries((5, "Happy"), (5, "Sad"), (5, "Neutral")))
        assert [d["percentage"] for d in dist] == [33.4, 33.3, 33.3]

    def test_each_percentage_is_within_a_tenth_of_exact(self):
        moods = ["Happy", "Sad", "Neutral", "Anxious", "Excited", "Stressed"]
        for d in mood_distribution(_entries(*[(5, m) for m in moods])):
            assert abs(d["percentage"] - 100 / 6) < 0.1

    def test_most_common(self):
        top = most_common_mood(_entries((7, "Content"), (6, "Content"), (2, "Sad")))
        assert top["mood"] == "Content"
        assert top["percentage"] == 66.7

    def test_empty_mood_fails_loudly(self):
        with pytest.raises(ValueError):
            mood_distribution([make_entry(mood="")])


class TestTrends:

    def test_daily_trend_is_oldest_first(self):
        entries = _entries((7, "Happy"), (9, "Excited"), (4, "Sad"))  # newest first
        trend = daily_trend(entries, 30, tz=timezone.utc)
        assert [p["overall_score"] for p in trend] == [4, 9, 7]
        assert trend[0]["date"] == "Oct 1"
        assert trend[-1]["mood"] == "Happy"

    def test_daily_trend_window_keeps_newest(self):
        entries = _entries((1, "Sad"), (2, "Sad"), (3, "Sad"), (4, "Sad"))
        assert [p["overall_score"] for p in daily_trend(entries, 2)] == [2, 1]

    def test_weekly_activity(self):
        entries = [
            make_entry(created_at="2026-10-07T23:30:00+00:00", entry_id="a"),
            make_entry(created_at="2026-10-07T08:00:00+00:00", entry_id="b"),
            make_entry(created_at="2026-10-05T12:00:00+00:00", entry_id="c"),
            make_entry(created_at="2026-09-20T12:00:00+00:00", entry_id="d"),
        ]
        activity = weekly_activity(entries, today=date(2026, 10, 7), tz=timezone.utc)
        assert [a["date"] for a in activity] == [
            "2026-10-01", "2026-10-02", "2026-10-03", "2026-10-04",
            "2026-10-05", "2026-10-06", "2026-10-07",
        ]
        assert [a["entries"] for a in activity] == [0, 0, 0, 0, 1, 0, 2]

    def test_weekly_activity_empty(self):
        activity = weekly_activity([], today=date(2026, 10, 7), tz=timezone.utc)
        assert len(activity) == 7
        assert all(a["entries"] == 0 for a in activity)


class TestPeriods:

    def test_breakdown_last_days_oldest_first(self):
        entries = [
            make_entry(created_at="2026-10-03T09:00:00+00:00", morning_score=9, entry_id="c"),
            make_entry(created_at="2026-10-02T09:00:00+00:00", morning_score=5, entry_id="b"),
            make_entry(created_at="2026-10-01T09:00:00+00:00", morning_score=2, entry_id="a"),
        ]
        rows = period_breakdown(entries, days=2, tz=timezone.utc)
        assert [r["morning_score"] for r in rows] == [5, 9]
        assert set(rows[0]) == {"date", "morning_score", "afternoon_score", "evening_score"}

    def test_period_averages(self):
        entries = [
            make_entry(score=6, morning_score=4, afternoon_score=5, evening_score=9, entry_id="a"),
            make_entry(score=7, morning_score=6, afternoon_score=6, evening_score=8, entry_id="b"),
        ]
        assert period_averages(entries) == {
            "overall": 6.5, "morning": 5.0, "afternoon": 5.5, "evening": 8.5,
        }

    def test_period_averages_empty(self):
        assert period_averages([]) == {"overall": 0.0, "morning": 0.0, "afternoon": 0.0, "evening": 0.0}

    def test_entries_to_frame(self):
        frame = entries_to_frame(_entries((7, "Happy"), (4, "Sad")))
        assert len(frame) == 2
        assert list(frame["overall_score"]) == [7, 4]
        assert "daily_summary" in frame.columns
        assert "user_id" not in frame.columns


class TestJournalAnalytics:

    def test_dashboard_over_repository(self, repo, clock, settings):
        for score, mood in [(4, "Sad"), (9, "Happy"), (7, "Happy")]:
            repo.save("u1", day_fields(score=score, mood=mood))
            clock.advance(days=1)
        repo.save("u2", day_fields(score=1, mood="Angry"))

        analytics = JournalAnalytics(repo, settings, tz=timezone.utc)
        report = analytics.dashboard("u1", today=date(2026, 10, 4))

        assert report["total_entries"] == 3
        assert report["average_score"] == 6.7
        assert report["most_common_mood"]["mood"] == "Happy"
        assert [p["overall_score"] for p in report["daily_trend"]] == [4, 9, 7]
        assert [a["entries"] for a in report["weekly_activity"]][-4:] == [1, 1, 1, 0]

    def test_dashboard_window_limits_entries(self, repo, clock, settings):
        for score in range(1, 8):
            repo.save("u1", day_fields(score=score))
            clock.advance(days=1)
        report = JournalAnalytics(repo, settings).dashboard("u1", window=3)
        assert report["total_entries"] == 3
        assert report["average_score"] == 6.0

    def test_journal_stats_empty(self, repo, settings):
        stats = JournalAnalytics(repo, settings).journal_stats("nobody", today=date(2026, 10, 1))
        assert stats["total_entries"] == 0
        assert stats["average_score"] == 0
        assert stats["mood_trend"] == []
        assert len(stats["weekly_activity"]) == 7

    def test_journal_stats_trend_is_last_seven(self, repo, clock, settings):
        for score in [1, 2, 3, 4, 5, 6, 7, 8, 9]:
            repo.save("u1", day_fields(score=score))
            clock.advance(days=1)
        stats = JournalAnalytics(repo, settings).journal_stats("u1")
        assert [p["score"] for p in stats["mood_trend"]] == [3, 4, 5, 6, 7, 8, 9]
