"""Pydantic request models for the HTTP API."""

from pydantic import BaseModel, Field

from nutrivision.domain.suggestions import MacroTargets


class GramsUpdate(BaseModel):
    """New portion size for the current scan."""

    grams: float = Field(gt=0)


class LabelChoice(BaseModel):
    """Label picked by the user from the candidates."""

    label: str = Field(min_length=1)


class MacroTargetsPayload(BaseModel):
    """Calories and macros entered into the meal helper."""

    calories: float = Field(ge=0)
    protein_g: float = Field(ge=0)
    carbs_g: float = Field(ge=0)
    fat_g: float = Field(ge=0)

    def to_domain(self) -> MacroTargets:
        return MacroTargets(
            calories=self.calories,
            protein_g=self.protein_g,
            carbs_g=self.carbs_g,
            fat_g=self.fat_g,
        )
