"""HTTP client for label-based nutrition lookups."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from nutrivision.adapters.classifier_client import format_grams


class NutritionClient(Protocol):
    """Interface for the remote nutrition lookup."""

    async def get_nutrition(self, query: str, grams: float) -> dict[str, object]:
        """Return raw nutrition data for a food label and portion."""


@dataclass
class HttpxNutritionClient(NutritionClient):
    """HTTPX-backed nutrition client."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 15

    @classmethod
    def create(cls, base_url: str, timeout: float = 15) -> "HttpxNutritionClient":
        """Create a nutrition client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    async def get_nutrition(self, query: str, grams: float) -> dict[str, object]:
        """Look up nutrients for ``query`` scaled to ``grams``."""
        response = await self.http_client.get(
            f"{self.base_url}/nutrition",
            params={"query": query, "grams": format_grams(grams)},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
