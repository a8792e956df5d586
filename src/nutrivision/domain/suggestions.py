"""Domain models for macro targets and meal suggestions."""

from dataclasses import dataclass


@dataclass(frozen=True)
class MacroTargets:
    """Calories and macronutrient grams for a day or a remainder."""

    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float


@dataclass(frozen=True)
class MealTemplate:
    """Reference meal with per-serving macros."""

    name: str
    kcal: float
    protein_g: float
    carbs_g: float
    fat_g: float


@dataclass(frozen=True)
class ScaledMacros:
    """Template macros multiplied by a factor and rounded for display."""

    calories: int
    protein_g: int
    carbs_g: int
    fat_g: int


@dataclass(frozen=True)
class Suggestion:
    """Best matching template and its portion scale."""

    template: MealTemplate
    factor: float
    macros: ScaledMacros


MEAL_TEMPLATES: tuple[MealTemplate, ...] = (
    MealTemplate("Chicken + Rice", kcal=550, protein_g=40, carbs_g=60, fat_g=12),
    MealTemplate("Egg Omelette + Toast", kcal=420, protein_g=25, carbs_g=30, fat_g=20),
    MealTemplate("Dal + Roti", kcal=480, protein_g=22, carbs_g=75, fat_g=10),
    MealTemplate("Paneer Bowl", kcal=520, protein_g=35, carbs_g=25, fat_g=28),
    MealTemplate("Greek Yogurt + Fruit", kcal=300, protein_g=20, carbs_g=35, fat_g=6),
    MealTemplate("Protein Shake", kcal=250, protein_g=30, carbs_g=10, fat_g=5),
)

DEFAULT_TARGETS = MacroTargets(calories=2000, protein_g=120, carbs_g=250, fat_g=65)
NO_INTAKE = MacroTargets(calories=0, protein_g=0, carbs_g=0, fat_g=0)
