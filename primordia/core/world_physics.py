"""World boundaries, overlap separation and radial pushes.

This module provides the small amount of physics the arcade world needs:
- World boundary enforcement (clamp or wrap) for moving bodies
- Knockback separation of a predator out of the player after a hit
- Radial repulsion away from a point (toxin zones)
"""

from __future__ import annotations

import math
from typing import Literal, Protocol

import structlog

logger = structlog.get_logger()


class Body(Protocol):
    """Anything with a position and a radius (player or entity)."""

    x: float
    y: float

    @property
    def radius(self) -> float: ...


class WorldPhysics:
    """Physics helpers for a square world centred on the origin."""

    def __init__(
        self,
        world_half_extent: float = 500.0,
        boundary_mode: Literal["clamp", "wrap"] = "clamp",
    ) -> None:
        """Initialize world physics.

        Args:
            world_half_extent: The world spans [-extent, extent] on both axes.
            boundary_mode: How to handle bodies at world edges.
                "clamp" - bodies stop at the wall
                "wrap" - bodies wrap to the opposite side
        """
        self.world_half_extent = world_half_extent
        self.boundary_mode = boundary_mode

    def apply_bounds(self, body: Body) -> None:
        """Keep a body's centre within the world."""
        extent = self.world_half_extent

        if self.boundary_mode == "clamp":
            body.x = min(max(body.x, -extent), extent)
            body.y = min(max(body.y, -extent), extent)

        elif self.boundary_mode == "wrap":
            if body.x < -extent:
                body.x = extent
            elif body.x > extent:
                body.x = -extent

            if body.y < -extent:
                body.y = extent
            elif body.y > extent:
                body.y = -extent

    def separate(self, anchor: Body, other: Body) -> float:
        """Push ``other`` out of overlap with ``anchor``; the anchor does not move.

        Args:
            anchor: Body that holds its position (the player).
            other: Body to displace (the predator that just hit).

        Returns:
            Distance ``other`` was moved (0.0 when not overlapping).
        """
        dx = other.x - anchor.x
        dy = other.y - anchor.y
        distance = math.sqrt(dx * dx + dy * dy)

        # Coincident centres: push along +x
        if distance < 0.001:
            nx, ny = 1.0, 0.0
            distance = 0.0
        else:
            nx = dx / distance
            ny = dy / distance

        overlap = (anchor.radius + other.radius) - distance
        if overlap <= 0:
            return 0.0

        push = overlap + 0.1  # small buffer so the pair no longer touches
        other.x += nx * push
        other.y += ny * push
        return push

    def push_away(self, body: Body, cx: float, cy: float, amount: float) -> None:
        """Move a body ``amount`` units directly away from a point."""
        dx = body.x - cx
        dy = body.y - cy
        distance = math.sqrt(dx * dx + dy * dy)

        if distance < 0.001:
            body.x += amount
            return

        body.x += dx / distance * amount
        body.y += dy / distance * amount
