"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from meal_tracker.adapters.supabase_favorite_repository import (
    SupabaseFavoriteRepository,
)
from meal_tracker.adapters.supabase_ledger_repository import SupabaseLedgerRepository
from meal_tracker.adapters.supabase_meal_repository import SupabaseMealRepository
from meal_tracker.adapters.supabase_profile_repository import (
    SupabaseProfileRepository,
)
from meal_tracker.adapters.supabase_repair_repository import SupabaseRepairRepository
from meal_tracker.adapters.supabase_streak_repository import SupabaseStreakRepository
from meal_tracker.config import Settings
from meal_tracker.services.favorites import FavoriteRepository, FavoriteService
from meal_tracker.services.ledger import LedgerRepository, NutritionLedger
from meal_tracker.services.nutrition import (
    MealRepository,
    NutritionService,
    RepairRepository,
)
from meal_tracker.services.profiles import ProfileRepository, ProfileService
from meal_tracker.services.stats import StatsService
from meal_tracker.services.streaks import StreakRepository, StreakTracker


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    nutrition_service: NutritionService
    stats_service: StatsService
    favorite_service: FavoriteService


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    meal_repository = SupabaseMealRepository(supabase_client)
    profile_repository = SupabaseProfileRepository(supabase_client)
    ledger_repository = SupabaseLedgerRepository(supabase_client)
    streak_repository = SupabaseStreakRepository(supabase_client)
    repair_repository = SupabaseRepairRepository(supabase_client)
    favorite_repository = SupabaseFavoriteRepository(supabase_client)
    return assemble_container(
        resolved_settings,
        meal_repository=meal_repository,
        profile_repository=profile_repository,
        ledger_repository=ledger_repository,
        streak_repository=streak_repository,
        repair_repository=repair_repository,
        favorite_repository=favorite_repository,
    )


def assemble_container(  # noqa: PLR0913
    settings: Settings,
    *,
    meal_repository: MealRepository,
    profile_repository: ProfileRepository,
    ledger_repository: LedgerRepository,
    streak_repository: StreakRepository,
    repair_repository: RepairRepository,
    favorite_repository: FavoriteRepository,
) -> AppContainer:
    """Wire services on top of already constructed repositories."""
    ledger = NutritionLedger(
        repository=ledger_repository,
        profile_repository=profile_repository,
        write_conflict_retries=settings.write_conflict_retries,
    )
    streak_tracker = StreakTracker(
        repository=streak_repository,
        write_conflict_retries=settings.write_conflict_retries,
    )
    nutrition_service = NutritionService(
        meal_repository=meal_repository,
        profile_service=ProfileService(profile_repository),
        ledger=ledger,
        streak_tracker=streak_tracker,
        repair_repository=repair_repository,
        retry_attempts=settings.follow_up_retry_attempts,
        retry_delay_seconds=settings.follow_up_retry_delay_seconds,
    )
    stats_service = StatsService(
        ledger_repository=ledger_repository,
        profile_repository=profile_repository,
    )
    return AppContainer(
        settings=settings,
        nutrition_service=nutrition_service,
        stats_service=stats_service,
        favorite_service=FavoriteService(
            repository=favorite_repository,
            nutrition_service=nutrition_service,
            write_conflict_retries=settings.write_conflict_retries,
        ),
    )
