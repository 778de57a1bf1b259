"""Analytics over the daily nutrition ledger."""

import calendar
import statistics
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from uuid import UUID

from meal_tracker.domain.ledger import DailySummary
from meal_tracker.domain.stats import NutritionAnalytics, WeeklyTrends, WeekSummary
from meal_tracker.services.ledger import LedgerRepository
from meal_tracker.services.macros import (
    CALORIES_PER_G_CARBS,
    CALORIES_PER_G_FAT,
    CALORIES_PER_G_PROTEIN,
    round_half_up,
)
from meal_tracker.services.profiles import ProfileRepository

DEFAULT_TARGET_CALORIES = 2000.0
GOAL_TOLERANCE_CALORIES = 200.0
TREND_THRESHOLD = 0.1
DAYS_PER_WEEK = 7

INCREASING = "increasing"
DECREASING = "decreasing"
STABLE = "stable"


@dataclass
class StatsService:
    """Service for nutrition analytics over date ranges."""

    ledger_repository: LedgerRepository
    profile_repository: ProfileRepository

    def summarize_range(self, user_id: UUID, start: date, end: date) -> NutritionAnalytics:
        """Return totals, averages and goal adherence between two days."""
        daily = self.ledger_repository.list_summaries(user_id, start, end)
        profile = self.profile_repository.get_profile(user_id)
        fallback_target = (
            profile.target_calories
            if profile and profile.target_calories
            else DEFAULT_TARGET_CALORIES
        )
        return _aggregate(start, end, daily, fallback_target)

    def summarize_week(self, user_id: UUID, day: date) -> NutritionAnalytics:
        """Return analytics for the Monday-to-Sunday week containing ``day``."""
        start = day - timedelta(days=day.weekday())
        return self.summarize_range(
            user_id, start, start + timedelta(days=DAYS_PER_WEEK - 1)
        )

    def summarize_month(self, user_id: UUID, year: int, month: int) -> NutritionAnalytics:
        """Return analytics for a calendar month."""
        start = date(year, month, 1)
        end = date(year, month, calendar.monthrange(year, month)[1])
        return self.summarize_range(user_id, start, end)

    def weekly_trends(
        self, user_id: UUID, weeks: int = 4, today: date | None = None
    ) -> WeeklyTrends:
        """Return per-week totals for the last ``weeks`` weeks and their trends."""
        last_day = today or datetime.now(tz=UTC).date()
        first_day = last_day - timedelta(days=weeks * DAYS_PER_WEEK - 1)
        daily = self.ledger_repository.list_summaries(user_id, first_day, last_day)

        summaries = []
        for index in range(weeks):
            week_start = first_day + timedelta(days=index * DAYS_PER_WEEK)
            week_end = week_start + timedelta(days=DAYS_PER_WEEK - 1)
            days = [entry for entry in daily if week_start <= entry.day <= week_end]
            summaries.append(_summarize_week(week_start, week_end, days))

        return WeeklyTrends(
            weeks=summaries,
            calorie_trend=_trend([week.average_daily_calories for week in summaries]),
            protein_trend=_trend([week.total_protein_g for week in summaries]),
            consistency_score=_consistency_score(
                [entry.total_calories for entry in daily]
            ),
        )


def _aggregate(
    start: date, end: date, daily: list[DailySummary], fallback_target: float
) -> NutritionAnalytics:
    total_calories = sum(entry.total_calories for entry in daily)
    total_protein = sum(entry.total_protein_g for entry in daily)
    total_carbs = sum(entry.total_carbs_g for entry in daily)
    total_fat = sum(entry.total_fat_g for entry in daily)

    on_target = 0
    for entry in daily:
        target = entry.target_calories or fallback_target
        if abs(entry.total_calories - target) <= GOAL_TOLERANCE_CALORIES:
            on_target += 1

    ratio_base = total_calories or 1.0
    return NutritionAnalytics(
        start=start,
        end=end,
        daily=daily,
        total_calories=total_calories,
        total_protein_g=total_protein,
        total_carbs_g=total_carbs,
        total_fat_g=total_fat,
        average_calories=total_calories / len(daily) if daily else 0.0,
        goal_achievement_rate=on_target / len(daily) * 100 if daily else 0.0,
        protein_ratio=total_protein * CALORIES_PER_G_PROTEIN / ratio_base * 100,
        carbs_ratio=total_carbs * CALORIES_PER_G_CARBS / ratio_base * 100,
        fat_ratio=total_fat * CALORIES_PER_G_FAT / ratio_base * 100,
    )


def _summarize_week(
    week_start: date, week_end: date, days: list[DailySummary]
) -> WeekSummary:
    total_calories = sum(entry.total_calories for entry in days)
    return WeekSummary(
        week_start=week_start,
        week_end=week_end,
        total_calories=total_calories,
        average_daily_calories=total_calories / len(days) if days else 0.0,
        total_protein_g=sum(entry.total_protein_g for entry in days),
        total_carbs_g=sum(entry.total_carbs_g for entry in days),
        total_fat_g=sum(entry.total_fat_g for entry in days),
        meal_count=sum(entry.meal_count for entry in days),
    )


def _trend(values: list[float]) -> str:
    """Compare the average of the later half against the earlier half."""
    if len(values) < 2:  # noqa: PLR2004
        return STABLE
    middle = len(values) // 2
    first_avg = statistics.fmean(values[:middle])
    second_avg = statistics.fmean(values[middle:])
    if first_avg == 0:
        return INCREASING if second_avg > 0 else STABLE
    change = (second_avg - first_avg) / first_avg
    if change > TREND_THRESHOLD:
        return INCREASING
    if change < -TREND_THRESHOLD:
        return DECREASING
    return STABLE


def _consistency_score(calories: list[float]) -> int:
    """Score 0-100 that drops as daily calories vary around their mean."""
    logged = [value for value in calories if value > 0]
    if not logged:
        return 0
    mean = statistics.fmean(logged)
    variation = statistics.pstdev(logged) / mean
    return round_half_up(max(0.0, 100 - variation * 100))
