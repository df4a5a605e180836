"""Year-in-review statistics computed from collected sessions and messages."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime, timedelta
from typing import Optional

from .collector import build_projects, collect_all
from .config import TOP_N, DataPaths
from .lookup import get_model_display_name, get_model_provider, get_provider_display_name
from .models import (
    ModelStats,
    MostActiveDay,
    ProviderStats,
    WeekdayActivity,
    WrappedStats,
)
from .parser import local_datetime

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def format_date_key(day) -> str:
    """Format a date or datetime as YYYY-MM-DD."""
    return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"


def weekday_index(day) -> int:
    """Day of week with 0 = Sunday."""
    return (day.weekday() + 1) % 7


def build_daily_activity(messages: list) -> dict[str, int]:
    """Count messages per local calendar date, in first-seen order."""
    activity: dict[str, int] = {}
    for message in messages:
        key = format_date_key(local_datetime(message.timestamp))
        activity[key] = activity.get(key, 0) + 1
    return activity


def rank_models(model_counts: Counter) -> list[ModelStats]:
    """Top models by assistant message count; ties keep first-seen order."""
    return [
        ModelStats(
            id=model_id,
            name=get_model_display_name(model_id),
            provider_id=get_model_provider(model_id),
            count=count,
        )
        for model_id, count in model_counts.most_common(TOP_N)
    ]


def rank_providers(provider_counts: Counter) -> list[ProviderStats]:
    """Top providers by assistant message count; ties keep first-seen order."""
    return [
        ProviderStats(
            id=provider_id,
            name=get_provider_display_name(provider_id),
            count=count,
        )
        for provider_id, count in provider_counts.most_common(TOP_N)
    ]


def count_streak_backwards(activity: dict, start: date) -> int:
    """Count consecutive active days going backwards from start (inclusive)."""
    streak = 1
    check = start
    while True:
        check -= timedelta(days=1)
        if format_date_key(check) not in activity:
            return streak
        streak += 1


def calculate_streaks(
    daily_activity: dict,
    year: int,
    now: Optional[datetime] = None,
    lifetime_activity: Optional[dict] = None,
) -> tuple[int, int, set[str]]:
    """Return (max_streak, current_streak, max_streak_days).

    The max streak only considers dates in the given year; of several runs
    with the same length, the earliest wins. The current streak is anchored
    at today or yesterday and walks back through lifetime_activity (falling
    back to daily_activity), so it can cross into the previous year. It is
    0 unless the year is the one of today or yesterday.
    """
    active_dates = sorted(key for key in daily_activity if key.startswith(str(year)))
    if not active_dates:
        return 0, 0, set()

    max_streak = 1
    temp_streak = 1
    temp_start = 0
    max_start = 0
    max_end = 0

    for i in range(1, len(active_dates)):
        prev = date.fromisoformat(active_dates[i - 1])
        curr = date.fromisoformat(active_dates[i])

        if (curr - prev).days == 1:
            temp_streak += 1
            if temp_streak > max_streak:
                max_streak = temp_streak
                max_start = temp_start
                max_end = i
        else:
            temp_streak = 1
            temp_start = i

    max_streak_days = set(active_dates[max_start:max_end + 1])

    activity = lifetime_activity if lifetime_activity is not None else daily_activity
    today = (now or datetime.now()).date()
    yesterday = today - timedelta(days=1)

    if year not in (today.year, yesterday.year):
        # A past year cannot have a streak that is still running
        current_streak = 0
    elif format_date_key(today) in activity:
        current_streak = count_streak_backwards(activity, today)
    elif format_date_key(yesterday) in activity:
        current_streak = count_streak_backwards(activity, yesterday)
    else:
        current_streak = 0

    return max_streak, current_streak, max_streak_days


def find_most_active_day(daily_activity: dict) -> Optional[MostActiveDay]:
    """Return the date with the highest count; the first one seen wins a tie."""
    max_date = ""
    max_count = 0
    for day, count in daily_activity.items():
        if count > max_count:
            max_count = count
            max_date = day

    if not max_date:
        return None

    parsed = date.fromisoformat(max_date)
    return MostActiveDay(
        date=max_date,
        count=max_count,
        formatted_date=f"{MONTH_NAMES[parsed.month - 1]} {parsed.day}",
    )


def build_weekday_activity(counts: list) -> WeekdayActivity:
    """Summarize weekday counts; the lowest index wins a tie."""
    most_active = 0
    max_count = 0
    for i, count in enumerate(counts):
        if count > max_count:
            max_count = count
            most_active = i

    return WeekdayActivity(
        counts=list(counts),
        most_active_day=most_active,
        most_active_day_name=WEEKDAY_NAMES[most_active],
        max_count=max_count,
    )


def compute_stats(
    year: int,
    source: str,
    sessions: list,
    messages: list,
    now: Optional[datetime] = None,
) -> WrappedStats:
    """Build the wrapped summary from unfiltered sessions and messages."""
    now = now or datetime.now()

    year_sessions = [s for s in sessions if local_datetime(s.timestamp).year == year]
    year_messages = [m for m in messages if local_datetime(m.timestamp).year == year]
    projects = build_projects(year_sessions, source)

    # First session ever, not just this year
    if not sessions:
        first_session_date = now
        days_since_first_session = 0
    else:
        first_timestamp = min(s.timestamp for s in sessions)
        first_session_date = local_datetime(first_timestamp)
        days_since_first_session = int((now.timestamp() * 1000 - first_timestamp) // DAY_MS)

    total_input_tokens = 0
    total_output_tokens = 0
    total_cost = 0.0
    model_counts: Counter = Counter()
    provider_counts: Counter = Counter()
    daily_activity: dict[str, int] = {}
    weekday_counts = [0] * 7

    for message in year_messages:
        usage = message.usage
        if usage:
            total_input_tokens += usage.input_tokens or 0
            total_output_tokens += usage.output_tokens or 0
            if usage.cost:
                total_cost += usage.cost

        if message.role == "assistant":
            if message.model_id:
                model_counts[message.model_id] += 1
            if message.provider:
                provider_counts[message.provider] += 1

        moment = local_datetime(message.timestamp)
        key = format_date_key(moment)
        daily_activity[key] = daily_activity.get(key, 0) + 1
        weekday_counts[weekday_index(moment)] += 1

    max_streak, current_streak, max_streak_days = calculate_streaks(
        daily_activity, year, now, lifetime_activity=build_daily_activity(messages)
    )

    logger.debug(
        "%s %d: %d sessions, %d messages, %d active days",
        source,
        year,
        len(year_sessions),
        len(year_messages),
        len(daily_activity),
    )

    return WrappedStats(
        year=year,
        source=source,
        first_session_date=first_session_date,
        days_since_first_session=days_since_first_session,
        total_sessions=len(year_sessions),
        total_messages=len(year_messages),
        total_projects=len(projects),
        total_input_tokens=total_input_tokens,
        total_output_tokens=total_output_tokens,
        total_tokens=total_input_tokens + total_output_tokens,
        total_cost=total_cost,
        top_models=rank_models(model_counts),
        top_providers=rank_providers(provider_counts),
        max_streak=max_streak,
        current_streak=current_streak,
        max_streak_days=max_streak_days,
        daily_activity=daily_activity,
        most_active_day=find_most_active_day(daily_activity),
        weekday_activity=build_weekday_activity(weekday_counts),
    )


def calculate_stats(
    year: int,
    source: str,
    paths: Optional[DataPaths] = None,
    now: Optional[datetime] = None,
) -> WrappedStats:
    """Collect a source's full history and summarize the given year."""
    collected = collect_all(source, paths=paths)
    return compute_stats(year, source, collected.sessions, collected.messages, now=now)
