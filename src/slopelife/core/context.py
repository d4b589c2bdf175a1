"""Population-wide aggregate snapshot read by emergence evaluation."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PopulationContext:
    """Counts taken once per tick and passed down, never recomputed per agent."""

    resource_count: int = 0
    carcass_count: int = 0
    organism_count: int = 0

    @property
    def resource_ratio(self) -> float:
        """Resources available per living organism."""
        return self.resource_count / max(1, self.organism_count)

    @property
    def carcass_ratio(self) -> float:
        return self.carcass_count / max(1, self.organism_count)

    def to_dict(self) -> dict[str, float]:
        return {
            "resource_count": self.resource_count,
            "carcass_count": self.carcass_count,
            "organism_count": self.organism_count,
            "resource_ratio": round(self.resource_ratio, 4),
            "carcass_ratio": round(self.carcass_ratio, 4),
        }
