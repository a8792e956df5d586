"""Meal logging service."""

import logging
from dataclasses import dataclass
from typing import Protocol

from nutrivision.domain.meals import MealRecord
from nutrivision.domain.recognition import ImageFile, NutritionProfile

_logger = logging.getLogger(__name__)


class MealRepository(Protocol):
    """Persistence gateway for logged meals."""

    def save_meal(self, record: MealRecord) -> None:
        """Persist a meal, raising on failure."""


class ImageStore(Protocol):
    """Storage for meal photos."""

    def upload(self, user_id: str, image: ImageFile) -> str:
        """Store an image and return an opaque reference to it."""


@dataclass
class MealLogService:
    """Builds meal records and hands them to the persistence gateway."""

    repository: MealRepository
    image_store: ImageStore | None = None

    def build_record(
        self,
        user_id: str,
        label: str,
        nutrition: NutritionProfile,
        image_ref: str | None = None,
    ) -> MealRecord:
        """Round the macros of a confirmed lookup into a meal record."""
        return MealRecord(
            user_id=user_id,
            title=label or "Meal",
            detected_label=label,
            grams=nutrition.grams,
            calories=round(nutrition.energy),
            protein_g=round(nutrition.protein),
            carbs_g=round(nutrition.carbohydrate),
            fat_g=round(nutrition.fat),
            image_ref=image_ref,
        )

    def store_image(self, user_id: str, image: ImageFile | None) -> str | None:
        """Upload the meal photo, returning None when there is none or it fails."""
        if self.image_store is None or image is None or image.released:
            return None
        try:
            return self.image_store.upload(user_id, image)
        except Exception:
            _logger.exception("Meal image upload failed")
            return None

    def save(self, record: MealRecord) -> MealRecord:
        """Persist a meal record."""
        self.repository.save_meal(record)
        _logger.info(
            "Saved meal: user=%s label=%s calories=%s",
            record.user_id,
            record.detected_label,
            record.calories,
        )
        return record
