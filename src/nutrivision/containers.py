"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from nutrivision.adapters.classifier_client import HttpxClassifierClient
from nutrivision.adapters.health_bridge_client import HttpxHealthBridgeSyncTarget
from nutrivision.adapters.nutrition_client import HttpxNutritionClient
from nutrivision.adapters.supabase_image_store import SupabaseImageStore
from nutrivision.adapters.supabase_meal_repository import SupabaseMealRepository
from nutrivision.config import Settings
from nutrivision.services.classification import Classifier, HttpClassifier
from nutrivision.services.meals import MealLogService
from nutrivision.services.nutrition import NutritionService
from nutrivision.services.recognition import (
    RecognitionSession,
    RecognitionSessionRegistry,
)
from nutrivision.services.suggestions import MealHelperService
from nutrivision.services.sync import SyncTarget, UnavailableSyncTarget


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    classifier: Classifier
    nutrition_service: NutritionService
    meal_log_service: MealLogService
    sync_target: SyncTarget
    sessions: RecognitionSessionRegistry
    meal_helper_service: MealHelperService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    timeout = resolved_settings.http_timeout_seconds
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    meal_log_service = MealLogService(
        repository=SupabaseMealRepository(
            supabase_client, table=resolved_settings.meals_table
        ),
        image_store=SupabaseImageStore(
            supabase_client, bucket=resolved_settings.meal_images_bucket
        ),
    )
    nutrition_client = HttpxNutritionClient.create(
        resolved_settings.api_base_url, timeout=timeout
    )
    nutrition_service = NutritionService(client=nutrition_client)

    classifier_client = HttpxClassifierClient.create(
        resolved_settings.api_base_url, timeout=timeout * 2
    )
    classifier = HttpClassifier(classifier_client)

    closers: list[Callable[[], Awaitable[None]]] = [
        nutrition_client.close,
        classifier_client.close,
    ]

    sync_target: SyncTarget
    if resolved_settings.health_bridge_url:
        bridge = HttpxHealthBridgeSyncTarget.create(resolved_settings.health_bridge_url)
        closers.append(bridge.close)
        sync_target = bridge
    else:
        sync_target = UnavailableSyncTarget()

    def new_session() -> RecognitionSession:
        return RecognitionSession(
            classifier=classifier,
            nutrition_service=nutrition_service,
            meal_log_service=meal_log_service,
            sync_target=sync_target,
            default_grams=resolved_settings.default_grams,
        )

    async def close_resources() -> None:
        for close in closers:
            await close()

    return AppContainer(
        settings=resolved_settings,
        classifier=classifier,
        nutrition_service=nutrition_service,
        meal_log_service=meal_log_service,
        sync_target=sync_target,
        sessions=RecognitionSessionRegistry(
            new_session, max_sessions=resolved_settings.max_sessions
        ),
        meal_helper_service=MealHelperService(
            max_users=resolved_settings.max_sessions
        ),
        close_resources=close_resources,
    )
