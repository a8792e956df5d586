"""Supabase repository for logged meals."""

from dataclasses import dataclass

from supabase import Client

from nutrivision.domain.meals import MealRecord
from nutrivision.services.meals import MealRepository


@dataclass
class SupabaseMealRepository(MealRepository):
    """Supabase implementation of the meal persistence gateway."""

    client: Client
    table: str = "meals"

    def save_meal(self, record: MealRecord) -> None:
        """Insert a meal row."""
        response = (
            self.client.table(self.table)
            .insert(
                {
                    "user_id": record.user_id,
                    "title": record.title,
                    "detected_label": record.detected_label,
                    "grams": record.grams,
                    "calories": record.calories,
                    "protein_g": record.protein_g,
                    "carbs_g": record.carbs_g,
                    "fat_g": record.fat_g,
                    "image_url": record.image_ref,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save meal")
