"""Classifier interface and the HTTP-backed implementation."""

import logging
from dataclasses import dataclass
from typing import Protocol

from nutrivision.adapters.classifier_client import ClassifierClient
from nutrivision.domain.recognition import ImageFile, Prediction

_logger = logging.getLogger(__name__)


class Classifier(Protocol):
    """Ranks food labels for an image."""

    async def predict(
        self, image: ImageFile, top_k: int, grams: float
    ) -> list[Prediction]:
        """Return predictions ordered by descending score."""


@dataclass
class HttpClassifier(Classifier):
    """Classifier backed by the prediction service."""

    client: ClassifierClient

    async def predict(
        self, image: ImageFile, top_k: int, grams: float
    ) -> list[Prediction]:
        """Submit the image and parse the ranked predictions."""
        payload = await self.client.classify(
            image=image.data,
            filename=image.filename,
            content_type=image.content_type,
            top_k=top_k,
            grams=grams,
        )
        predictions = _parse_predictions(payload.get("predictions"))
        _logger.debug("Classifier returned %s predictions", len(predictions))
        return predictions


def _parse_predictions(raw: object) -> list[Prediction]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise RuntimeError("Classifier returned malformed predictions")
    predictions = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        score = item.get("score")
        predictions.append(
            Prediction(
                label=str(item.get("label") or ""),
                score=float(score) if isinstance(score, int | float) else 0.0,
            )
        )
    return predictions
