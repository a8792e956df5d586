"""Tests for classifiers and the nutrition service."""

import asyncio
from dataclasses import dataclass, field

import pytest

from nutrivision.adapters.classifier_client import ClassifierClient
from nutrivision.domain.recognition import ImageFile, Prediction
from nutrivision.services.classification import HttpClassifier
from nutrivision.services.nutrition import NutritionService
from tests.conftest import FakeNutritionClient


@dataclass
class StaticClassifierClient(ClassifierClient):
    payload: dict[str, object]
    calls: list[dict[str, object]] = field(default_factory=list)

    async def classify(  # noqa: PLR0913
        self,
        *,
        image: bytes,
        filename: str,
        content_type: str,
        top_k: int,
        grams: float,
    ) -> dict[str, object]:
        self.calls.append(
            {"image": image, "filename": filename, "top_k": top_k, "grams": grams}
        )
        return self.payload


def test_http_classifier_parses_predictions_in_service_order() -> None:
    client = StaticClassifierClient(
        {
            "predictions": [
                {"label": "fried_rice", "score": 0.62},
                {"label": "paella", "score": 0.2},
                {"label": None},
            ],
            "used_query": "fried rice",
        }
    )
    classifier = HttpClassifier(client)

    predictions = asyncio.run(
        classifier.predict(ImageFile(b"img", filename="a.jpg"), 5, 250)
    )

    assert predictions == [
        Prediction("fried_rice", 0.62),
        Prediction("paella", 0.2),
        Prediction("", 0.0),
    ]
    assert client.calls[0]["top_k"] == 5
    assert client.calls[0]["grams"] == 250


def test_http_classifier_treats_missing_predictions_as_empty() -> None:
    classifier = HttpClassifier(StaticClassifierClient({}))

    assert asyncio.run(classifier.predict(ImageFile(b"img"), 5, 200)) == []


def test_http_classifier_rejects_malformed_predictions() -> None:
    classifier = HttpClassifier(StaticClassifierClient({"predictions": "pizza"}))

    with pytest.raises(RuntimeError):
        asyncio.run(classifier.predict(ImageFile(b"img"), 5, 200))


def test_nutrition_service_builds_profile_for_request() -> None:
    client = FakeNutritionClient()
    service = NutritionService(client)

    profile = asyncio.run(service.lookup("burger", 150))

    assert profile.label == "burger"
    assert profile.grams == 150
    assert profile.energy == pytest.approx(442.5)
    assert profile.protein == pytest.approx(25.5)
    assert profile.carbohydrate == pytest.approx(36)
    assert profile.fat == pytest.approx(21)
    assert client.calls == [("burger", 150)]


@dataclass
class RawNutritionClient:
    payload: dict[str, object]

    async def get_nutrition(self, query: str, grams: float) -> dict[str, object]:
        return self.payload


def test_nutrition_service_keeps_extra_nutrients_and_skips_bad_values() -> None:
    service = NutritionService(
        RawNutritionClient(
            {
                "nutrients_for_grams": {
                    "Energy": "210",
                    "Fiber, total dietary": 3.2,
                    "Sodium, Na": "n/a",
                    "Protein": None,
                }
            }
        )
    )

    profile = asyncio.run(service.lookup("salad", 100))

    assert profile.nutrients == {"Energy": 210.0, "Fiber, total dietary": 3.2}
    assert profile.protein == 0.0


def test_nutrition_service_rejects_malformed_payload() -> None:
    service = NutritionService(RawNutritionClient({"nutrients_for_grams": [1, 2]}))

    with pytest.raises(RuntimeError):
        asyncio.run(service.lookup("salad", 100))
