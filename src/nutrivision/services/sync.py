"""Optional health-platform sync targets."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from nutrivision.domain.meals import MealRecord
from nutrivision.domain.sync import SyncOutcome

CAPABILITY_MISSING = (
    "Health Connect sync is only available through the Android companion app."
)


class SyncTarget(Protocol):
    """Destination for confirmed meals on a health platform."""

    async def sync_meal(self, payload: dict[str, object]) -> SyncOutcome:
        """Deliver a meal payload."""


@dataclass
class UnavailableSyncTarget(SyncTarget):
    """Stand-in used when no sync bridge is configured."""

    message: str = CAPABILITY_MISSING

    async def sync_meal(self, payload: dict[str, object]) -> SyncOutcome:
        return SyncOutcome(delivered=False, message=self.message)


def build_sync_payload(
    record: MealRecord, now: datetime | None = None
) -> dict[str, object]:
    """Build the meal payload understood by the health bridge."""
    timestamp = now or datetime.now(tz=UTC)
    return {
        "time": timestamp.isoformat(),
        "kcal": record.calories,
        "protein": record.protein_g,
        "carbs": record.carbs_g,
        "fat": record.fat_g,
        "name": record.title,
    }
