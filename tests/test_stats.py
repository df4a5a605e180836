"""Tests for the statistics engine."""

import json
from collections import Counter
from datetime import datetime

import pytest

from cli_wrapped.config import default_data_paths
from cli_wrapped.models import MessageData, SessionData, Usage
from cli_wrapped.stats import (
    build_weekday_activity,
    calculate_stats,
    calculate_streaks,
    compute_stats,
    find_most_active_day,
    format_date_key,
    rank_models,
    rank_providers,
)


def ms(*args):
    return int(datetime(*args).timestamp() * 1000)


def message(day, role="assistant", model=None, provider=None, usage=None, hour=12):
    return MessageData(
        session_id="s",
        role=role,
        timestamp=ms(*day, hour),
        source="pi",
        provider=provider,
        model_id=model,
        usage=usage,
    )


def session(session_id, day, cwd="/work"):
    return SessionData(
        id=session_id,
        timestamp=ms(*day, 12),
        cwd=cwd,
        provider="anthropic",
        model_id="claude",
        source="pi",
    )


NOW = datetime(2025, 12, 31, 18, 0)


class TestFormatDateKey:
    def test_zero_padded(self):
        assert format_date_key(datetime(2025, 3, 7, 23, 59)) == "2025-03-07"


class TestCalculateStreaks:
    def test_end_to_end_three_days(self):
        messages = [message((2025, 1, 1)), message((2025, 1, 2)), message((2025, 1, 4))]
        stats = compute_stats(2025, "pi", [], messages, now=NOW)

        assert stats.daily_activity == {"2025-01-01": 1, "2025-01-02": 1, "2025-01-04": 1}
        assert stats.max_streak == 2
        assert stats.max_streak_days == {"2025-01-01", "2025-01-02"}

    def test_empty(self):
        assert calculate_streaks({}, 2025, NOW) == (0, 0, set())

    def test_single_day(self):
        max_streak, _, days = calculate_streaks({"2025-05-05": 3}, 2025, NOW)
        assert max_streak == 1
        assert days == {"2025-05-05"}

    def test_first_of_equal_runs_wins(self):
        activity = {"2025-02-05": 1, "2025-02-06": 1, "2025-02-01": 1, "2025-02-02": 1}
        max_streak, _, days = calculate_streaks(activity, 2025, NOW)
        assert max_streak == 2
        assert days == {"2025-02-01", "2025-02-02"}

    def test_longer_later_run_wins(self):
        activity = dict.fromkeys(["2025-02-01", "2025-02-02", "2025-03-01", "2025-03-02", "2025-03-03"], 1)
        max_streak, _, days = calculate_streaks(activity, 2025, NOW)
        assert max_streak == 3
        assert days == {"2025-03-01", "2025-03-02", "2025-03-03"}

    def test_run_across_month_and_leap_day(self):
        activity = dict.fromkeys(["2024-02-28", "2024-02-29", "2024-03-01", "2024-03-03"], 1)
        max_streak, _, days = calculate_streaks(activity, 2024, NOW)
        assert max_streak == 3
        assert days == {"2024-02-28", "2024-02-29", "2024-03-01"}

    def test_other_years_ignored_for_max(self):
        activity = dict.fromkeys(["2024-12-30", "2024-12-31", "2025-01-01", "2025-01-03"], 1)
        max_streak, _, days = calculate_streaks(activity, 2025, NOW)
        assert max_streak == 1
        assert days == {"2025-01-01"}

    def test_max_streak_days_are_consecutive(self):
        activity = dict.fromkeys(
            ["2025-04-01", "2025-04-02", "2025-04-03", "2025-04-10", "2025-04-11", "2025-04-12", "2025-04-13"], 1
        )
        max_streak, _, days = calculate_streaks(activity, 2025, NOW)
        ordered = sorted(days)
        assert len(ordered) == max_streak == 4
        for prev, curr in zip(ordered, ordered[1:]):
            assert (datetime.fromisoformat(curr) - datetime.fromisoformat(prev)).days == 1


class TestCurrentStreak:
    ACTIVITY = dict.fromkeys(["2025-06-08", "2025-06-09", "2025-06-10"], 1)

    def test_anchored_today(self):
        _, current, _ = calculate_streaks(self.ACTIVITY, 2025, datetime(2025, 6, 10, 8))
        assert current == 3

    def test_anchored_yesterday(self):
        _, current, _ = calculate_streaks(self.ACTIVITY, 2025, datetime(2025, 6, 11, 8))
        assert current == 3

    def test_broken(self):
        _, current, _ = calculate_streaks(self.ACTIVITY, 2025, datetime(2025, 6, 12, 8))
        assert current == 0

    def test_bridges_year_boundary(self):
        messages = [message((2024, 12, 30)), message((2024, 12, 31)), message((2025, 1, 1))]
        stats = compute_stats(2025, "pi", [], messages, now=datetime(2025, 1, 1, 20))

        assert stats.daily_activity == {"2025-01-01": 1}
        assert stats.total_messages == 1
        assert stats.max_streak == 1
        assert stats.current_streak == 3

    def test_past_year_has_no_current_streak(self):
        lifetime = dict.fromkeys(["2024-06-01", "2025-12-30", "2025-12-31"], 1)
        year_activity = {"2024-06-01": 1}
        max_streak, current, _ = calculate_streaks(year_activity, 2024, NOW, lifetime_activity=lifetime)
        assert max_streak == 1
        assert current == 0

        _, current, _ = calculate_streaks({"2025-12-30": 1, "2025-12-31": 1}, 2025, NOW, lifetime_activity=lifetime)
        assert current == 2

    def test_previous_year_counts_on_new_years_day(self):
        activity = dict.fromkeys(["2025-12-30", "2025-12-31"], 1)
        _, current, _ = calculate_streaks(activity, 2025, datetime(2026, 1, 1, 9))
        assert current == 2

    def test_past_year_end_to_end(self):
        messages = [message((2024, 3, 1)), message((2025, 12, 31))]
        stats = compute_stats(2024, "pi", [], messages, now=NOW)
        assert stats.max_streak == 1
        assert stats.current_streak == 0


class TestMostActiveDay:
    def test_tie_keeps_first_inserted(self):
        activity = {"2025-03-02": 4, "2025-03-01": 4, "2025-03-03": 1}
        day = find_most_active_day(activity)
        assert day.date == "2025-03-02"
        assert day.count == 4
        assert day.formatted_date == "Mar 2"

    def test_tie_follows_message_order(self):
        messages = [message((2025, 7, 20)), message((2025, 7, 4)), message((2025, 7, 4)), message((2025, 7, 20))]
        stats = compute_stats(2025, "pi", [], messages, now=NOW)
        assert stats.most_active_day.date == "2025-07-20"
        assert stats.most_active_day.formatted_date == "Jul 20"

    def test_empty(self):
        assert find_most_active_day({}) is None


class TestWeekdayActivity:
    def test_counts_from_sunday(self):
        # 2025-01-05 is a Sunday, 2025-01-01 a Wednesday
        messages = [message((2025, 1, 5)), message((2025, 1, 1)), message((2025, 1, 8))]
        activity = compute_stats(2025, "pi", [], messages, now=NOW).weekday_activity

        assert activity.counts == [1, 0, 0, 2, 0, 0, 0]
        assert activity.most_active_day == 3
        assert activity.most_active_day_name == "Wednesday"
        assert activity.max_count == 2

    def test_full_tie_is_sunday(self):
        activity = build_weekday_activity([0] * 7)
        assert activity.most_active_day == 0
        assert activity.most_active_day_name == "Sunday"
        assert activity.max_count == 0

    def test_partial_tie_keeps_lowest_index(self):
        assert build_weekday_activity([0, 2, 5, 0, 5, 0, 1]).most_active_day == 2


class TestRanking:
    def test_top_three_descending_stable(self):
        counts = Counter()
        for model_id, count in [("A", 5), ("B", 5), ("C", 3), ("D", 9)]:
            counts[model_id] = count
        ranked = rank_models(counts)

        assert [m.id for m in ranked] == ["D", "A", "B"]
        assert [m.count for m in ranked] == [9, 5, 5]
        assert all(m.percentage == 0 for m in ranked)

    def test_model_names_and_providers(self):
        ranked = rank_models(Counter({"claude-sonnet-4-5-20250929": 2, "mystery-model": 1}))
        assert ranked[0].name == "Claude Sonnet 4.5"
        assert ranked[0].provider_id == "anthropic"
        assert ranked[1].name == "mystery-model"
        assert ranked[1].provider_id == ""

    def test_provider_names_fall_back_to_id(self):
        ranked = rank_providers(Counter({"openai": 3, "acme": 1}))
        assert [(p.id, p.name) for p in ranked] == [("openai", "OpenAI"), ("acme", "acme")]

    def test_only_assistant_messages_counted(self):
        messages = [
            message((2025, 5, 1), role="user", model="gpt-5", provider="openai"),
            message((2025, 5, 1), model="gpt-5", provider="openai"),
            message((2025, 5, 1), model="claude-opus-4-20250514", provider="anthropic"),
            message((2025, 5, 1), model="claude-opus-4-20250514", provider="anthropic"),
            message((2025, 5, 1), model="", provider=""),
        ]
        stats = compute_stats(2025, "pi", [], messages, now=NOW)

        assert [(m.id, m.count) for m in stats.top_models] == [("claude-opus-4-20250514", 2), ("gpt-5", 1)]
        assert [(p.id, p.count) for p in stats.top_providers] == [("anthropic", 2), ("openai", 1)]


class TestComputeStats:
    def test_empty_year(self):
        stats = compute_stats(2025, "claude", [session("old", (2023, 4, 1))], [], now=NOW)

        assert stats.total_sessions == 0
        assert stats.total_messages == 0
        assert stats.total_projects == 0
        assert stats.total_tokens == 0
        assert stats.total_cost == 0
        assert stats.max_streak == 0
        assert stats.current_streak == 0
        assert stats.max_streak_days == set()
        assert stats.daily_activity == {}
        assert stats.most_active_day is None
        assert stats.top_models == []
        assert stats.first_session_date.year == 2023

    def test_no_sessions_at_all(self):
        stats = compute_stats(2025, "pi", [], [], now=NOW)
        assert stats.first_session_date == NOW
        assert stats.days_since_first_session == 0

    def test_first_session_is_lifetime(self):
        sessions = [session("a", (2025, 3, 1)), session("b", (2024, 12, 21))]
        stats = compute_stats(2025, "pi", sessions, [], now=datetime(2024, 12, 31, 12))

        assert stats.first_session_date == datetime(2024, 12, 21, 12)
        assert stats.days_since_first_session == 10
        assert stats.total_sessions == 1

    def test_tokens_and_cost(self):
        messages = [
            message((2025, 2, 1), usage=Usage(input_tokens=100, output_tokens=40, cost=0.5)),
            message((2025, 2, 1), usage=Usage(input_tokens=10, output_tokens=0, cache_read_tokens=500)),
            message((2025, 2, 2), role="user"),
            message((2024, 2, 2), usage=Usage(input_tokens=9999, output_tokens=9999, cost=99.0)),
        ]
        stats = compute_stats(2025, "pi", [], messages, now=NOW)

        assert stats.total_input_tokens == 110
        assert stats.total_output_tokens == 40
        assert stats.total_tokens == 150
        assert stats.total_cost == pytest.approx(0.5)
        assert stats.total_messages == 3

    def test_daily_activity_sums_to_message_count(self):
        messages = [message((2025, m, d), hour=h) for m, d, h in [(1, 1, 0), (1, 1, 23), (6, 30, 12), (12, 31, 23)]]
        messages.append(message((2026, 1, 1), hour=0))
        stats = compute_stats(2025, "pi", [], messages, now=NOW)

        assert sum(stats.daily_activity.values()) == stats.total_messages == 4
        assert sum(stats.weekday_activity.counts) == 4

    def test_projects_follow_year_sessions(self):
        sessions = [
            session("a", (2025, 1, 2), cwd="/one"),
            session("b", (2025, 1, 3), cwd="/one"),
            session("c", (2025, 1, 4), cwd="/two"),
            session("d", (2024, 1, 4), cwd="/three"),
        ]
        stats = compute_stats(2025, "pi", sessions, [], now=NOW)
        assert stats.total_sessions == 3
        assert stats.total_projects == 2


class TestCalculateStats:
    def test_reads_source(self, tmp_path):
        paths = default_data_paths(home=tmp_path)
        root = paths.get("claude") / "-repo"
        root.mkdir(parents=True)
        lines = [
            {"type": "user", "sessionId": "old", "cwd": "/repo", "timestamp": "2024-06-01T12:00:00Z",
             "message": {"role": "user"}},
            {"type": "user", "sessionId": "new", "cwd": "/repo", "timestamp": "2025-06-01T12:00:00Z",
             "message": {"role": "user"}},
            {"type": "assistant", "sessionId": "new", "cwd": "/repo", "timestamp": "2025-06-01T12:00:10Z",
             "message": {"role": "assistant", "model": "claude-sonnet-4-5-20250929",
                         "usage": {"input_tokens": 12, "output_tokens": 30}}},
        ]
        (root / "a.jsonl").write_text("\n".join(json.dumps(line) for line in lines))

        stats = calculate_stats(2025, "claude", paths=paths, now=NOW)

        assert stats.source == "claude"
        assert stats.total_sessions == 1
        assert stats.total_messages == 2
        assert stats.total_projects == 1
        assert stats.total_tokens == 42
        assert stats.top_models[0].name == "Claude Sonnet 4.5"
        assert stats.top_providers[0].name == "Anthropic"
        assert stats.first_session_date.year == 2024

    def test_missing_source(self, tmp_path):
        stats = calculate_stats(2025, "codex", paths=default_data_paths(home=tmp_path), now=NOW)
        assert stats.total_sessions == 0
        assert stats.most_active_day is None


def write_jsonl(path, *records):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(json.dumps(r) for r in records) + "\n", encoding="utf-8")


def write_json(path, document):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document), encoding="utf-8")


class TestMalformedValues:
    """Wrongly typed or out-of-range values are dropped, never fatal."""

    HUGE = 10**20

    @pytest.fixture
    def paths(self, tmp_path):
        return default_data_paths(home=tmp_path)

    def test_pi(self, paths):
        root = paths.get("pi")
        write_jsonl(
            root / "a" / "1.jsonl",
            {"type": "session", "id": "p-1", "timestamp": "2025-06-15T12:00:00", "cwd": "/app"},
            {"type": "message", "timestamp": "2025-06-15T12:01:00",
             "message": {"role": "assistant", "model": "gpt-5", "provider": "openai"}},
            {"type": "message", "timestamp": self.HUGE, "message": {"role": "user"}},
            {"type": "message", "timestamp": "2025-06-15T12:02:00",
             "message": {"role": "assistant", "model": 5, "provider": ["openai"]}},
        )
        write_jsonl(
            root / "b" / "2.jsonl",
            {"type": "session", "id": "p-2", "timestamp": "2025-06-16T12:00:00", "cwd": ["/x"]},
            {"type": "message", "timestamp": "2025-06-16T12:01:00", "message": {"role": "user"}},
        )
        write_jsonl(root / "c" / "3.jsonl", {"type": "session", "id": "p-3", "timestamp": -self.HUGE})

        stats = calculate_stats(2025, "pi", paths=paths, now=NOW)

        assert stats.total_sessions == 2
        assert stats.total_messages == 3
        assert stats.total_projects == 2
        assert [(m.id, m.count) for m in stats.top_models] == [("gpt-5", 1)]
        assert [(p.id, p.count) for p in stats.top_providers] == [("openai", 1)]

    def test_claude(self, paths):
        root = paths.get("claude") / "-repo"
        write_jsonl(
            root / "a.jsonl",
            {"type": "user", "sessionId": "c-1", "cwd": "/repo", "timestamp": "2025-06-15T12:00:00",
             "message": {"role": "user"}},
            {"type": "assistant", "sessionId": "c-1", "cwd": "/repo", "timestamp": "2025-06-15T12:00:10",
             "message": {"role": "assistant", "model": ["claude-opus-4-20250514"]}},
            {"type": "assistant", "sessionId": "c-1", "cwd": "/repo", "timestamp": self.HUGE,
             "message": {"role": "assistant", "model": "claude-opus-4-20250514"}},
            {"type": "user", "sessionId": {"id": "c-2"}, "cwd": "/repo", "timestamp": "2025-06-15T12:00:20",
             "message": {"role": "user"}},
            {"type": "user", "sessionId": "c-3", "cwd": 42, "timestamp": "2025-06-16T09:00:00",
             "message": {"role": "user"}},
        )

        stats = calculate_stats(2025, "claude", paths=paths, now=NOW)

        assert stats.total_sessions == 2
        assert stats.total_messages == 3
        assert stats.total_projects == 2
        assert stats.top_models == []
        assert [(p.id, p.count) for p in stats.top_providers] == [("anthropic", 1)]

    def test_codex(self, paths):
        root = paths.get("codex") / "2025" / "06" / "15"
        write_jsonl(
            root / "rollout-1.jsonl",
            {"type": "session_meta", "timestamp": "2025-06-15T12:00:00",
             "payload": {"id": "x-1", "cwd": {"path": "/w"}, "model_provider": 5}},
            {"type": "turn_context", "timestamp": "2025-06-15T12:00:01", "payload": {"model": 7}},
            {"type": "response_item", "timestamp": "2025-06-15T12:00:02",
             "payload": {"type": "message", "role": "user"}},
            {"type": "response_item", "timestamp": self.HUGE,
             "payload": {"type": "message", "role": "assistant"}},
            {"type": "response_item", "timestamp": "2025-06-15T12:00:03",
             "payload": {"type": "message", "role": "assistant"}},
        )

        stats = calculate_stats(2025, "codex", paths=paths, now=NOW)

        assert stats.total_sessions == 1
        assert stats.total_messages == 2
        assert stats.total_projects == 1
        assert [(m.id, m.count) for m in stats.top_models] == [("codex", 1)]
        assert [(p.id, p.count) for p in stats.top_providers] == [("openai", 1)]

    def test_opencode(self, paths):
        root = paths.get("opencode")
        created = {"created": ms(2025, 6, 15, 12)}
        write_json(root / "session" / "p" / "ses_1.json", {"id": "ses_1", "directory": "/site", "time": created})
        write_json(root / "session" / "p" / "ses_2.json", {"id": "ses_2", "directory": ["/x"], "time": created})
        write_json(root / "session" / "p" / "ses_3.json", {"id": "ses_3", "directory": "/y",
                                                            "time": {"created": self.HUGE}})
        write_json(root / "message" / "ses_1" / "msg_1.json",
                   {"sessionID": "ses_1", "role": "assistant", "modelID": "gpt-5", "providerID": "openai",
                    "time": created})
        write_json(root / "message" / "ses_1" / "msg_2.json",
                   {"sessionID": 3, "role": "assistant", "modelID": 5, "providerID": {"id": "openai"},
                    "time": created})
        write_json(root / "message" / "ses_1" / "msg_3.json",
                   {"sessionID": "ses_1", "role": "user", "time": {"created": -self.HUGE}})

        stats = calculate_stats(2025, "opencode", paths=paths, now=NOW)

        assert stats.total_sessions == 2
        assert stats.total_messages == 2
        assert stats.total_projects == 2
        assert [(m.id, m.count) for m in stats.top_models] == [("gpt-5", 1)]
        assert [(p.id, p.count) for p in stats.top_providers] == [("openai", 1)]
