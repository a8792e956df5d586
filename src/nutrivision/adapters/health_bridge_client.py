"""Health sync target that forwards meals to a device bridge over HTTP."""

import logging
from dataclasses import dataclass

import httpx

from nutrivision.domain.sync import SyncOutcome
from nutrivision.services.sync import SyncTarget

_logger = logging.getLogger(__name__)


@dataclass
class HttpxHealthBridgeSyncTarget(SyncTarget):
    """Posts meal payloads to the companion app's Health Connect bridge."""

    bridge_url: str
    http_client: httpx.AsyncClient
    timeout: float = 10

    @classmethod
    def create(cls, bridge_url: str) -> "HttpxHealthBridgeSyncTarget":
        """Create a bridge target with a managed httpx session."""
        return cls(bridge_url=bridge_url, http_client=httpx.AsyncClient())

    async def sync_meal(self, payload: dict[str, object]) -> SyncOutcome:
        """Send one meal to the bridge."""
        try:
            response = await self.http_client.post(
                self.bridge_url, json=payload, timeout=self.timeout
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            _logger.warning("Health bridge sync failed: %s", exc)
            return SyncOutcome(
                delivered=False, message=f"Health bridge call failed: {exc}"
            )
        return SyncOutcome(
            delivered=True,
            message="Sent to Health Connect. Approve permissions if prompted.",
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
