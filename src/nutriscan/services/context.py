"""Personalization context rendered into assistant prompts.

The renderer is pure: the same data always yields the same text. The
service gathers the data and falls back to the "data unavailable" block
whenever any lookup fails, so callers always get a usable string.
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta, tzinfo
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo

from nutriscan.domain.consumption import ConsumptionLogEntry
from nutriscan.domain.goals import DailyGoal
from nutriscan.domain.models import UserRecord
from nutriscan.domain.profiles import Profile
from nutriscan.services.consumption import sum_nutrients
from nutriscan.services.numbers import format_number, round_int

_logger = logging.getLogger(__name__)

DEFAULT_SUGAR_LIMIT_G = 50
TODAY_FOOD_LIMIT = 5
TODAY_LOG_FETCH_LIMIT = 50
RECENT_WINDOW_DAYS = 7
RECENT_LOG_FETCH_LIMIT = 100
RECENT_DATE_LIMIT = 3
RECENT_FOODS_PER_DATE = 3
MAX_NAME_LENGTH = 60
MAX_FOOD_NAME_LENGTH = 80

_CONTROL_CHARS = re.compile(r"[\x00-\x09\x0b-\x1f\x7f]")
_WHITESPACE = re.compile(r"\s+")

INSTRUCTIONS = """PERSONALIZATION INSTRUCTIONS:
- ONLY use data that is actually available - don't contradict yourself
- If profile is incomplete, tell user to complete setup first
- If daily goals exist, reference them specifically
- If no goals are set, don't mention specific calorie numbers
- Be consistent - don't say "goal undefined" then mention specific calorie targets
- Provide advice based only on the data you actually have"""


class ProfileSource(Protocol):
    def get_profile(self, user_id: UUID) -> Profile | None: ...


class GoalSource(Protocol):
    def get_goal(self, user_id: UUID) -> DailyGoal | None: ...


class LogSource(Protocol):
    def list_entries(  # noqa: PLR0913
        self,
        user_id: UUID,
        start: date | None,
        end: date | None,
        offset: int,
        limit: int,
    ) -> tuple[list[ConsumptionLogEntry], int]: ...


@dataclass(frozen=True)
class PersonalizationData:
    """Everything known about a user's nutritional state."""

    name: str | None
    profile: Profile | None = None
    goal: DailyGoal | None = None
    today_entries: list[ConsumptionLogEntry] = field(default_factory=list)
    today_count: int | None = None
    recent_entries: list[ConsumptionLogEntry] = field(default_factory=list)


def render_personalization_context(
    data: PersonalizationData, tz: tzinfo = UTC
) -> str:
    """Render the context block; entry times are shown in ``tz``."""
    lines = [
        "USER PERSONALIZATION CONTEXT:",
        "",
        "USER PROFILE:",
        f"- Name: {_clean_text(data.name, MAX_NAME_LENGTH) or 'Unknown'}",
    ]

    if data.profile is None and data.goal is None:
        lines += [
            "- Profile Status: INCOMPLETE - User needs to complete onboarding first",
            "- Daily Goals: NOT SET - Cannot provide personalized advice",
            "",
            "IMPORTANT: Tell user they need to complete their profile setup "
            "to get personalized nutrition goals and advice. "
            "Do not mention any specific calorie or macro numbers.",
        ]
    else:
        lines += _profile_lines(data.profile)
        lines += _goal_lines(data.goal)
        lines += _progress_lines(data, tz)
        lines += _pattern_lines(data.recent_entries)

    lines += ["", INSTRUCTIONS]
    return _strip_control("\n".join(lines))


def render_unavailable_context(reason: str = "Failed to fetch user data") -> str:
    return _strip_control(
        f"USER CONTEXT: User data unavailable ({_clean_text(reason, 120)}) - "
        "provide general nutrition advice and suggest completing their profile "
        "for personalized recommendations."
    )


def _profile_lines(profile: Profile | None) -> list[str]:
    if profile is None:
        return ["- Profile Status: INCOMPLETE - Basic info missing"]
    return [
        f"- Age: {profile.age} years old",
        f"- Gender: {_clean_text(profile.sex, 20)}",
        f"- Height: {format_number(profile.height_cm)} cm",
        f"- Weight: {format_number(profile.weight_kg)} kg",
        f"- BMI: {profile.bmi:.1f}",
        f"- Activity Level: {_clean_text(profile.activity_level, 40)}",
    ]


def _goal_lines(goal: DailyGoal | None) -> list[str]:
    if goal is None:
        return [
            "",
            "DAILY NUTRITION GOALS: NOT SET - User needs to complete profile setup",
        ]
    targets = goal.targets
    return [
        f"- Goal Type: {goal.goal_type.value}",
        "",
        "DAILY NUTRITION GOALS:",
        f"- Calories: {format_number(targets.calories)} kcal/day",
        f"- Protein: {format_number(targets.protein_g)}g/day",
        f"- Carbohydrates: {format_number(targets.carbs_g)}g/day",
        f"- Fat: {format_number(targets.fat_g)}g/day",
    ]


def _progress_lines(data: PersonalizationData, tz: tzinfo) -> list[str]:
    totals = sum_nutrients(data.today_entries)
    goal = data.goal
    if goal is None:
        limits: dict[str, float | None] = dict.fromkeys(
            ("calories", "protein", "carbs", "fat", "sugar")
        )
    else:
        limits = {
            "calories": goal.targets.calories,
            "protein": goal.targets.protein_g,
            "carbs": goal.targets.carbs_g,
            "fat": goal.targets.fat_g,
            "sugar": DEFAULT_SUGAR_LIMIT_G,
        }
    count = data.today_count
    if count is None:
        count = len(data.today_entries)

    lines = [
        "",
        "TODAY'S PROGRESS (Current Status):",
        _progress("Calories", totals.calories, limits["calories"], " kcal", ""),
        _progress("Protein", totals.protein_g, limits["protein"], "g", "g"),
        _progress("Carbs", totals.carbs_g, limits["carbs"], "g", "g"),
        _progress("Fat", totals.fat_g, limits["fat"], "g", "g"),
        _progress("Sugar", totals.sugar_g, limits["sugar"], "g", "g"),
        "",
        f"FOODS EATEN TODAY ({count} total items):",
    ]
    if not data.today_entries:
        lines.append("- No food logged today yet")
        return lines
    for index, entry in enumerate(data.today_entries[:TODAY_FOOD_LIMIT], start=1):
        time = entry.consumed_at.astimezone(tz).strftime("%H:%M")
        name = _clean_text(entry.food_name, MAX_FOOD_NAME_LENGTH) or "Unknown food"
        lines.append(
            f"{index}. {time}: {name} ({format_number(entry.amount_g)}g) - "
            f"{round_int(entry.nutrients.calories or 0)} kcal"
        )
    return lines


def _progress(
    label: str, consumed: float, target: float | None, unit: str, target_unit: str
) -> str:
    if target is None:
        return f"- {label}: {round_int(consumed)}{target_unit}/?{unit} (?%)"
    percent = f"{round_int(consumed / target * 100)}" if target > 0 else "?"
    return (
        f"- {label}: {round_int(consumed)}{target_unit}/"
        f"{format_number(target)}{unit} ({percent}%)"
    )


def _pattern_lines(entries: Iterable[ConsumptionLogEntry]) -> list[str]:
    by_date: dict[date, tuple[float, list[str]]] = {}
    for entry in entries:
        calories, names = by_date.get(entry.log_date, (0.0, []))
        names.append(
            _clean_text(entry.food_name, MAX_FOOD_NAME_LENGTH) or "Unknown food"
        )
        by_date[entry.log_date] = (calories + (entry.nutrients.calories or 0), names)
    if not by_date:
        return []

    lines = ["", "RECENT EATING PATTERNS (Last 7 days):"]
    for day in sorted(by_date, reverse=True)[:RECENT_DATE_LIMIT]:
        calories, names = by_date[day]
        shown = ", ".join(names[:RECENT_FOODS_PER_DATE])
        more = "..." if len(names) > RECENT_FOODS_PER_DATE else ""
        lines.append(f"- {day.isoformat()}: {round_int(calories)} kcal ({shown}{more})")
    return lines


def _clean_text(value: str | None, limit: int) -> str:
    if not value:
        return ""
    single_line = _WHITESPACE.sub(" ", _CONTROL_CHARS.sub(" ", value)).strip()
    return single_line[:limit]


def _strip_control(text: str) -> str:
    return _CONTROL_CHARS.sub("", text)


@dataclass
class PersonalizationContextService:
    """Collects a user's data and renders it for the assistant."""

    profiles: ProfileSource
    goals: GoalSource
    logs: LogSource
    timezone: str = "UTC"

    def build_context(self, user: UserRecord) -> str:
        try:
            data = self.collect(user)
        except Exception:
            _logger.exception(
                "Failed to fetch personalization data",
                extra={"user_id": str(user.id)},
            )
            return render_unavailable_context()
        return render_personalization_context(data, ZoneInfo(self.timezone))

    def collect(self, user: UserRecord) -> PersonalizationData:
        today = datetime.now(tz=ZoneInfo(self.timezone)).date()
        today_entries, today_count = self.logs.list_entries(
            user.id, today, today, 0, TODAY_LOG_FETCH_LIMIT
        )
        recent_entries, _ = self.logs.list_entries(
            user.id,
            today - timedelta(days=RECENT_WINDOW_DAYS),
            today,
            0,
            RECENT_LOG_FETCH_LIMIT,
        )
        return PersonalizationData(
            name=user.name,
            profile=self.profiles.get_profile(user.id),
            goal=self.goals.get_goal(user.id),
            today_entries=today_entries,
            today_count=today_count,
            recent_entries=recent_entries,
        )
