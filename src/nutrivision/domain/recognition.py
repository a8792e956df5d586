"""Domain models for image recognition and nutrition resolution."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum

ENERGY = "Energy"
PROTEIN = "Protein"
CARBOHYDRATE = "Carbohydrate, by difference"
FAT = "Total lipid (fat)"


class SessionState(StrEnum):
    """Named states of a recognition session."""

    IDLE = "IDLE"
    ANALYZING = "ANALYZING"
    PREDICTIONS_READY = "PREDICTIONS_READY"
    AUTO_CONFIRMED = "AUTO_CONFIRMED"
    NEEDS_DISAMBIGUATION = "NEEDS_DISAMBIGUATION"
    NUTRITION_RESOLVING = "NUTRITION_RESOLVING"
    CONFIRMED = "CONFIRMED"
    PERSIST_REQUESTED = "PERSIST_REQUESTED"
    PERSISTED = "PERSISTED"
    PERSIST_FAILED = "PERSIST_FAILED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class Prediction:
    """Single ranked label from the classifier."""

    label: str
    score: float


@dataclass(frozen=True)
class Candidate:
    """Normalized label offered to the user for confirmation."""

    label: str
    score: float


@dataclass(frozen=True)
class NutritionProfile:
    """Nutrient amounts for one label at one gram quantity."""

    label: str
    grams: float
    nutrients: Mapping[str, float] = field(default_factory=dict)

    @property
    def energy(self) -> float:
        return self.nutrients.get(ENERGY, 0.0)

    @property
    def protein(self) -> float:
        return self.nutrients.get(PROTEIN, 0.0)

    @property
    def carbohydrate(self) -> float:
        return self.nutrients.get(CARBOHYDRATE, 0.0)

    @property
    def fat(self) -> float:
        return self.nutrients.get(FAT, 0.0)


@dataclass(frozen=True)
class RecognitionResult:
    """Current view of a recognition: predictions plus the confirmed lookup.

    ``nutrition`` is only set together with the ``selected_label`` it was
    looked up for.
    """

    predictions: tuple[Candidate, ...] = ()
    selected_label: str | None = None
    nutrition: NutritionProfile | None = None
    grams: float = 200


@dataclass
class ImageFile:
    """Selected image held for preview and upload until released."""

    data: bytes
    filename: str = "image.jpg"
    content_type: str = "image/jpeg"
    released: bool = False

    @property
    def extension(self) -> str:
        suffix = self.filename.rsplit(".", 1)[-1] if "." in self.filename else ""
        return (suffix or "jpg").lower()

    def release(self) -> None:
        """Drop the image bytes."""
        self.data = b""
        self.released = True
