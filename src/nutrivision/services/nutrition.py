"""Nutrition lookups for a confirmed label and portion."""

import logging
from dataclasses import dataclass

from nutrivision.adapters.nutrition_client import NutritionClient
from nutrivision.domain.recognition import NutritionProfile

_logger = logging.getLogger(__name__)


@dataclass
class NutritionService:
    """Resolves a (label, grams) pair to a nutrition profile.

    The remote service scales nutrients itself; results are never rescaled
    locally.
    """

    client: NutritionClient
    debug: bool = False

    async def lookup(self, label: str, grams: float) -> NutritionProfile:
        """Fetch nutrients for ``label`` at ``grams``."""
        payload = await self.client.get_nutrition(label, grams)
        nutrients = _extract_nutrients(payload.get("nutrients_for_grams"))
        if self.debug:
            _logger.info(
                "Nutrition lookup: label=%s grams=%s nutrients=%s",
                label,
                grams,
                len(nutrients),
            )
        return NutritionProfile(label=label, grams=grams, nutrients=nutrients)


def _extract_nutrients(raw: object) -> dict[str, float]:
    """Keep numeric nutrient amounts, skipping anything unparseable."""
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise RuntimeError("Nutrition service returned malformed nutrients")
    nutrients: dict[str, float] = {}
    for name, amount in raw.items():
        if isinstance(amount, bool):
            continue
        if isinstance(amount, int | float):
            nutrients[str(name)] = float(amount)
        elif isinstance(amount, str):
            try:
                nutrients[str(name)] = float(amount)
            except ValueError:
                continue
    return nutrients
