"""HTTP client for the food image classifier."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class ClassifierClient(Protocol):
    """Interface for the remote image classifier."""

    async def classify(  # noqa: PLR0913
        self,
        *,
        image: bytes,
        filename: str,
        content_type: str,
        top_k: int,
        grams: float,
    ) -> dict[str, object]:
        """Submit an image and return the raw prediction payload."""


@dataclass
class HttpxClassifierClient(ClassifierClient):
    """HTTPX-backed classifier client."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 30

    @classmethod
    def create(cls, base_url: str, timeout: float = 30) -> "HttpxClassifierClient":
        """Create a classifier client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    async def classify(  # noqa: PLR0913
        self,
        *,
        image: bytes,
        filename: str,
        content_type: str,
        top_k: int,
        grams: float,
    ) -> dict[str, object]:
        """Upload the image as multipart form data."""
        response = await self.http_client.post(
            f"{self.base_url}/predict-and-nutrition",
            params={"top_k": top_k, "grams": format_grams(grams)},
            files={"image": (filename, image, content_type)},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def format_grams(grams: float) -> str:
    """Render grams without a trailing ``.0`` for query strings."""
    return str(int(grams)) if float(grams).is_integer() else str(grams)
