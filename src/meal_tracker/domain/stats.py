"""Domain models for nutrition analytics."""

from dataclasses import dataclass
from datetime import date

from meal_tracker.domain.ledger import DailySummary


@dataclass(frozen=True)
class NutritionAnalytics:
    """Totals, averages and ratios over a range of days."""

    start: date
    end: date
    daily: list[DailySummary]
    total_calories: float
    total_protein_g: float
    total_carbs_g: float
    total_fat_g: float
    average_calories: float
    goal_achievement_rate: float
    protein_ratio: float
    carbs_ratio: float
    fat_ratio: float


@dataclass(frozen=True)
class WeekSummary:
    """Totals for one week."""

    week_start: date
    week_end: date
    total_calories: float
    average_daily_calories: float
    total_protein_g: float
    total_carbs_g: float
    total_fat_g: float
    meal_count: int


@dataclass(frozen=True)
class WeeklyTrends:
    """Week-over-week trends."""

    weeks: list[WeekSummary]
    calorie_trend: str
    protein_trend: str
    consistency_score: int
