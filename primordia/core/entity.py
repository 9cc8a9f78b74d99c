"""Entity model: kind-tagged dataclass for food, predators and allies."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EntityKind(str, Enum):
    """Discriminator for world entities."""

    FOOD = "food"
    PREDATOR = "predator"
    ALLY = "ally"


KIND_COLORS: dict[EntityKind, str] = {
    EntityKind.FOOD: "#0088ff",
    EntityKind.PREDATOR: "#ff0000",
    EntityKind.ALLY: "#00aa00",
}


@dataclass
class Entity:
    """A single non-player entity in the world.

    Food and predators are spawned independently of the player; allies are
    only created by the ally ability and act on the player's side. Size
    doubles as the collision radius.

    The render handle belongs to the rendering collaborator. The core stores
    it and hands it back on removal but never looks inside it.
    """

    id: str
    kind: EntityKind
    x: float
    y: float
    size: float
    color: str

    # Insertion order inside the registry; iteration and tie-breaks use it
    seq: int = 0
    removed: bool = False

    render_handle: Any = field(default=None, repr=False, compare=False)

    @property
    def radius(self) -> float:
        return self.size

    def distance_to(self, x: float, y: float) -> float:
        """Straight-line distance from this entity's centre to a point."""
        return math.hypot(self.x - x, self.y - y)

    def overlaps(self, x: float, y: float, radius: float) -> bool:
        """Check if a circle at (x, y) with the given radius touches this entity.

        Returns:
            bool: True when the centre distance is below the sum of radii.
        """
        return self.distance_to(x, y) < self.radius + radius

    def move(self, dx: float, dy: float) -> None:
        self.x += dx
        self.y += dy

    def is_alive(self) -> bool:
        return not self.removed
