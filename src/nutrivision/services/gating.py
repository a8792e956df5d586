"""Confidence gate and candidate presentation for ranked predictions."""

from collections.abc import Sequence
from dataclasses import dataclass

from nutrivision.domain.recognition import Candidate, Prediction
from nutrivision.services.labels import normalize_label

AUTO_ACCEPT_THRESHOLD = 0.4
CANDIDATE_LIMIT = 5


@dataclass(frozen=True)
class GateDecision:
    """Outcome of the confidence gate."""

    auto_label: str | None

    @property
    def needs_disambiguation(self) -> bool:
        return self.auto_label is None


def decide(predictions: Sequence[Prediction]) -> GateDecision:
    """Auto-accept the top prediction when it is confident enough."""
    if not predictions:
        return GateDecision(auto_label=None)
    top = predictions[0]
    label = normalize_label(top.label)
    if label and top.score >= AUTO_ACCEPT_THRESHOLD:
        return GateDecision(auto_label=label)
    return GateDecision(auto_label=None)


def present(
    predictions: Sequence[Prediction], limit: int = CANDIDATE_LIMIT
) -> tuple[Candidate, ...]:
    """Return the top ranked predictions as normalized candidates."""
    return tuple(
        Candidate(label=normalize_label(prediction.label), score=prediction.score)
        for prediction in predictions[:limit]
    )
