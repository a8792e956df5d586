"""Health sync domain models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SyncOutcome:
    """Result of handing a meal to a health sync target."""

    delivered: bool
    message: str
