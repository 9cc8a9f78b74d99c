"""Player state for the organism controlled through the pointer."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum


class Stage(str, Enum):
    """Evolutionary stages, ordered from first to last."""

    CELLULAR = "Cellular"
    MULTICELLULAR = "Multicellular"
    AQUATIC = "Aquatic"
    AMPHIBIOUS = "Amphibious"
    TERRESTRIAL = "Terrestrial"
    SENTIENT = "Sentient"

    @property
    def rank(self) -> int:
        return list(Stage).index(self)


# Minimum size needed to reach each stage
STAGE_THRESHOLDS: tuple[tuple[float, Stage], ...] = (
    (0.0, Stage.CELLULAR),
    (10.0, Stage.MULTICELLULAR),
    (20.0, Stage.AQUATIC),
    (35.0, Stage.AMPHIBIOUS),
    (55.0, Stage.TERRESTRIAL),
    (80.0, Stage.SENTIENT),
)


def stage_for_size(size: float) -> Stage:
    """Map a size to its stage using the fixed thresholds."""
    stage = Stage.CELLULAR
    for threshold, candidate in STAGE_THRESHOLDS:
        if size >= threshold:
            stage = candidate
    return stage


@dataclass
class TraitLevels:
    """Permanent upgrades: four numeric levels and three ability unlocks."""

    speed: int = 0
    size: int = 0
    defense: int = 0
    absorption: int = 0
    speed_burst: bool = False
    toxin: bool = False
    ally: bool = False

    def as_dict(self) -> dict[str, int | bool]:
        return {
            "speed": self.speed,
            "size": self.size,
            "defense": self.defense,
            "absorption": self.absorption,
            "speed_burst": self.speed_burst,
            "toxin": self.toxin,
            "ally": self.ally,
        }


@dataclass
class Cooldowns:
    """Per-ability tick counters; an ability is idle when its counter is 0."""

    speed_burst: int = 0
    toxin: int = 0
    ally: int = 0

    def tick(self) -> None:
        """Decrement every running counter by one, never below zero."""
        self.speed_burst = max(0, self.speed_burst - 1)
        self.toxin = max(0, self.toxin - 1)
        self.ally = max(0, self.ally - 1)

    def as_dict(self) -> dict[str, int]:
        return {"speed_burst": self.speed_burst, "toxin": self.toxin, "ally": self.ally}


@dataclass
class PlayerState:
    """The single player organism of a game session.

    Only the owning GameSession mutates this object; collaborators see
    it through GameSnapshot.
    """

    size: float = 5.0
    energy: float = 100.0
    max_energy: float = 100.0
    evolution_points: int = 0
    score: int = 0
    stage: Stage = Stage.CELLULAR
    x: float = 0.0
    y: float = 0.0
    alive: bool = True
    traits: TraitLevels = field(default_factory=TraitLevels)

    # Ticks of invulnerability left after taking predator damage
    damage_grace: int = 0

    color: str = "#00ff00"

    @property
    def radius(self) -> float:
        return self.size

    def distance_to(self, x: float, y: float) -> float:
        return math.hypot(self.x - x, self.y - y)
