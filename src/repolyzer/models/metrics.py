"""Derived metrics entities."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class BusRisk(Enum):
    """Knowledge-concentration risk derived from the bus factor."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class MaturityLevel(Enum):
    """Ordered maturity bands, lowest first."""

    NASCENT = "nascent"
    GROWING = "growing"
    ESTABLISHED = "established"
    MATURE = "mature"


@dataclass(frozen=True)
class MetricsSnapshot:
    """Scores derived from one repository snapshot.

    Always recomputed from input data; never cached across runs.

    Attributes:
        health_score: Composite activity/responsiveness/diversity score (0-100)
        bus_factor: Minimum number of top contributors holding the majority of commits
        bus_risk: Risk label for the bus factor
        maturity_score: Composite age/hygiene/breadth score (0-100)
        maturity_level: Band of the maturity score
    """

    health_score: int = 0
    bus_factor: int = 0
    bus_risk: BusRisk = BusRisk.HIGH
    maturity_score: int = 0
    maturity_level: MaturityLevel = MaturityLevel.NASCENT

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "health_score": self.health_score,
            "bus_factor": self.bus_factor,
            "bus_risk": self.bus_risk.value,
            "maturity_score": self.maturity_score,
            "maturity_level": self.maturity_level.value,
        }
