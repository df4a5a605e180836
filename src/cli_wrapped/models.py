"""Data models for the wrapped pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

ROLES = ("user", "assistant", "toolResult")


@dataclass
class Usage:
    """Token and cost accounting attached to a message."""

    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_tokens: Optional[int] = None
    cache_write_tokens: Optional[int] = None
    cost: Optional[float] = None


@dataclass
class SessionData:
    """One continuous work session from one source."""

    id: str
    timestamp: int  # epoch ms
    cwd: str
    provider: str
    model_id: str
    source: str


@dataclass
class MessageData:
    """One user, assistant or tool-result turn."""

    session_id: str
    role: str
    timestamp: int  # epoch ms
    source: str
    provider: Optional[str] = None
    model_id: Optional[str] = None
    usage: Optional[Usage] = None


@dataclass
class ProjectData:
    """A working directory and the number of sessions rooted there."""

    path: str
    session_count: int
    source: str


@dataclass
class ParseResult:
    """What a single file or document contributed.

    An empty result means the unit was skipped.
    """

    sessions: list[SessionData] = field(default_factory=list)
    messages: list[MessageData] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.sessions or self.messages)


@dataclass
class CollectedData:
    """Everything collected from one source."""

    sessions: list[SessionData] = field(default_factory=list)
    messages: list[MessageData] = field(default_factory=list)
    projects: list[ProjectData] = field(default_factory=list)


@dataclass
class ModelStats:
    """Ranked usage of a single model."""

    id: str
    name: str
    provider_id: str
    count: int
    percentage: float = 0.0


@dataclass
class ProviderStats:
    """Ranked usage of a single provider."""

    id: str
    name: str
    count: int
    percentage: float = 0.0


@dataclass
class MostActiveDay:
    """The busiest calendar date of the year."""

    date: str
    count: int
    formatted_date: str


@dataclass
class WeekdayActivity:
    """Message counts per weekday, index 0 is Sunday."""

    counts: list[int]
    most_active_day: int
    most_active_day_name: str
    max_count: int


@dataclass
class WrappedStats:
    """Year-in-review summary for one source."""

    year: int
    source: str

    # Lifetime
    first_session_date: datetime
    days_since_first_session: int

    # Counts
    total_sessions: int
    total_messages: int
    total_projects: int

    # Tokens and cost
    total_input_tokens: int
    total_output_tokens: int
    total_tokens: int
    total_cost: float

    # Rankings
    top_models: list[ModelStats]
    top_providers: list[ProviderStats]

    # Streaks
    max_streak: int
    current_streak: int
    max_streak_days: set[str]

    # Activity
    daily_activity: dict[str, int]  # {YYYY-MM-DD: count}, insertion ordered
    most_active_day: Optional[MostActiveDay]
    weekday_activity: WeekdayActivity

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "year": self.year,
            "source": self.source,
            "firstSessionDate": self.first_session_date.isoformat(),
            "daysSinceFirstSession": self.days_since_first_session,
            "totalSessions": self.total_sessions,
            "totalMessages": self.total_messages,
            "totalProjects": self.total_projects,
            "totalInputTokens": self.total_input_tokens,
            "totalOutputTokens": self.total_output_tokens,
            "totalTokens": self.total_tokens,
            "totalCost": self.total_cost,
            "topModels": [
                {
                    "id": m.id,
                    "name": m.name,
                    "providerId": m.provider_id,
                    "count": m.count,
                    "percentage": m.percentage,
                }
                for m in self.top_models
            ],
            "topProviders": [
                {
                    "id": p.id,
                    "name": p.name,
                    "count": p.count,
                    "percentage": p.percentage,
                }
                for p in self.top_providers
            ],
            "maxStreak": self.max_streak,
            "currentStreak": self.current_streak,
            "maxStreakDays": sorted(self.max_streak_days),
            "dailyActivity": dict(self.daily_activity),
            "mostActiveDay": (
                {
                    "date": self.most_active_day.date,
                    "count": self.most_active_day.count,
                    "formattedDate": self.most_active_day.formatted_date,
                }
                if self.most_active_day
                else None
            ),
            "weekdayActivity": {
                "counts": list(self.weekday_activity.counts),
                "mostActiveDay": self.weekday_activity.most_active_day,
                "mostActiveDayName": self.weekday_activity.most_active_day_name,
                "maxCount": self.weekday_activity.max_count,
            },
        }
