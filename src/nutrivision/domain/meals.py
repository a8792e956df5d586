"""Domain models for meal logging."""

from dataclasses import dataclass


@dataclass(frozen=True)
class MealRecord:
    """Fully formed meal row handed to the persistence gateway."""

    user_id: str
    title: str
    detected_label: str
    grams: float
    calories: int
    protein_g: int
    carbs_g: int
    fat_g: int
    image_ref: str | None = None
