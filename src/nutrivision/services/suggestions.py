"""Meal suggestions that close the remaining macro gap."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from nutrivision.domain.suggestions import (
    DEFAULT_TARGETS,
    MEAL_TEMPLATES,
    NO_INTAKE,
    MacroTargets,
    MealTemplate,
    ScaledMacros,
    Suggestion,
)

MIN_FACTOR = 0.5
MAX_FACTOR = 2.0
MAX_USERS = 256

# Per-gram deviation weights; calories count at face value.
CALORIE_WEIGHT = 1.0
PROTEIN_WEIGHT = 8.0
CARBS_WEIGHT = 3.0
FAT_WEIGHT = 6.0

_logger = logging.getLogger(__name__)


def remaining_macros(target: MacroTargets, consumed: MacroTargets) -> MacroTargets:
    """Return what is left of the target, never below zero."""
    return MacroTargets(
        calories=max(0.0, target.calories - consumed.calories),
        protein_g=max(0.0, target.protein_g - consumed.protein_g),
        carbs_g=max(0.0, target.carbs_g - consumed.carbs_g),
        fat_g=max(0.0, target.fat_g - consumed.fat_g),
    )


def score_template(remaining: MacroTargets, template: MealTemplate) -> float:
    """Weighted distance between a template and the remainder; lower is better."""
    return (
        abs(remaining.calories - template.kcal) * CALORIE_WEIGHT
        + abs(remaining.protein_g - template.protein_g) * PROTEIN_WEIGHT
        + abs(remaining.carbs_g - template.carbs_g) * CARBS_WEIGHT
        + abs(remaining.fat_g - template.fat_g) * FAT_WEIGHT
    )


def scale_factor(remaining: MacroTargets, template: MealTemplate) -> float:
    """Portion multiplier toward the remaining calories, clamped to 0.5-2x."""
    if remaining.calories <= 0 or template.kcal <= 0:
        return 1.0
    raw = remaining.calories / template.kcal
    return max(MIN_FACTOR, min(MAX_FACTOR, raw))


def suggest(
    remaining: MacroTargets, catalog: Sequence[MealTemplate] = MEAL_TEMPLATES
) -> Suggestion:
    """Pick the closest template and scale it.

    Ties go to the earlier template. Each scaled macro is rounded on its own,
    so the rounded macros need not add up to the rounded calories.
    """
    if not catalog:
        raise ValueError("Meal template catalog is empty")
    best = catalog[0]
    best_score = score_template(remaining, best)
    for template in catalog[1:]:
        score = score_template(remaining, template)
        if score < best_score:
            best, best_score = template, score

    factor = scale_factor(remaining, best)
    return Suggestion(
        template=best,
        factor=factor,
        macros=ScaledMacros(
            calories=round(best.kcal * factor),
            protein_g=round(best.protein_g * factor),
            carbs_g=round(best.carbs_g * factor),
            fat_g=round(best.fat_g * factor),
        ),
    )


@dataclass
class HelperState:
    """Targets and intake a user has entered into the meal helper."""

    target: MacroTargets = DEFAULT_TARGETS
    consumed: MacroTargets = NO_INTAKE

    @property
    def remaining(self) -> MacroTargets:
        return remaining_macros(self.target, self.consumed)


@dataclass
class MealHelperService:
    """Keeps per-user targets and derives the current suggestion."""

    catalog: Sequence[MealTemplate] = MEAL_TEMPLATES
    max_users: int = MAX_USERS
    _states: dict[str, HelperState] = field(default_factory=dict)

    def get_state(self, user_id: str) -> HelperState:
        """Return the user's helper state, creating defaults on first use.

        Only the ``max_users`` most recently seen users are kept.
        """
        state = self._states.pop(user_id, None) or HelperState()
        self._states[user_id] = state
        while len(self._states) > self.max_users:
            del self._states[next(iter(self._states))]
        return state

    def set_target(self, user_id: str, target: MacroTargets) -> Suggestion:
        """Replace the daily target and return the refreshed suggestion."""
        _validate(target)
        self.get_state(user_id).target = target
        return self.current_suggestion(user_id)

    def set_consumed(self, user_id: str, consumed: MacroTargets) -> Suggestion:
        """Replace the intake so far and return the refreshed suggestion."""
        _validate(consumed)
        self.get_state(user_id).consumed = consumed
        return self.current_suggestion(user_id)

    def current_suggestion(self, user_id: str) -> Suggestion:
        """Suggest a meal for what the user has left today."""
        suggestion = suggest(self.get_state(user_id).remaining, self.catalog)
        _logger.debug(
            "Suggestion for %s: %s x%.2f",
            user_id,
            suggestion.template.name,
            suggestion.factor,
        )
        return suggestion


def _validate(macros: MacroTargets) -> None:
    values = (macros.calories, macros.protein_g, macros.carbs_g, macros.fat_g)
    if any(value < 0 for value in values):
        raise ValueError("Macro values must be non-negative")
