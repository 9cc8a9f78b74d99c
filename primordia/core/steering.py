"""Per-tick displacement for the player, allies and repelled predators."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

import structlog

from primordia.config import Settings
from primordia.core.entity import EntityKind
from primordia.core.entity_registry import EntityRegistry
from primordia.core.player import PlayerState
from primordia.core.traits import ToxinZone
from primordia.core.world_physics import WorldPhysics

logger = structlog.get_logger()


@dataclass
class MovementReport:
    """What the player's movement did this tick; consumed by the economy."""

    distance: float = 0.0
    burst_active: bool = False

    @property
    def moved(self) -> bool:
        return self.distance > 0.0


class Steering:
    """Computes and applies movement for everything that moves.

    - The player heads straight for the pointer target.
    - Allies seek the nearest food.
    - Predators caught inside an active toxin zone are pushed outward.
    """

    def __init__(self, settings: Settings, physics: WorldPhysics) -> None:
        self.settings = settings
        self.physics = physics

    def player_speed(self, player: PlayerState, burst_active: bool) -> float:
        """Speed in world units per tick, including the speed trait and burst."""
        speed = self.settings.base_speed + player.traits.speed * self.settings.speed_per_level
        if burst_active:
            speed *= self.settings.burst_multiplier
        return speed

    def move_player(
        self,
        player: PlayerState,
        target_x: float,
        target_y: float,
        burst_active: bool = False,
    ) -> MovementReport:
        """Move the player one step toward the pointer target.

        Args:
            player: The player state to move.
            target_x: Pointer x in world coordinates.
            target_y: Pointer y in world coordinates.
            burst_active: Whether the speed burst doubles the step.

        Returns:
            MovementReport with the distance covered this tick.
        """
        dir_x = target_x - player.x
        dir_y = target_y - player.y
        length = math.sqrt(dir_x * dir_x + dir_y * dir_y)

        # Pointer exactly on the player: nothing to do
        if length == 0:
            return MovementReport(distance=0.0, burst_active=burst_active)

        speed = self.player_speed(player, burst_active)
        start_x, start_y = player.x, player.y

        player.x += dir_x / length * speed
        player.y += dir_y / length * speed
        self.physics.apply_bounds(player)

        distance = math.hypot(player.x - start_x, player.y - start_y)
        return MovementReport(distance=distance, burst_active=burst_active)

    def move_allies(self, registry: EntityRegistry) -> int:
        """Advance every ally toward its nearest food.

        Allies without any food to chase stay where they are.

        Returns:
            Number of allies that moved.
        """
        moved = 0
        for ally in registry.entities(EntityKind.ALLY):
            target = registry.nearest(EntityKind.FOOD, ally.x, ally.y)
            if target is None:
                continue

            dx = target.x - ally.x
            dy = target.y - ally.y
            dist = math.sqrt(dx * dx + dy * dy)
            if dist == 0:
                continue

            step = min(self.settings.ally_speed, dist)
            ally.move(dx / dist * step, dy / dist * step)
            self.physics.apply_bounds(ally)
            moved += 1

        return moved

    def repel_predators(self, zones: Iterable[ToxinZone], registry: EntityRegistry) -> int:
        """Push predators out of active toxin zones.

        Returns:
            Number of predator displacements applied.
        """
        pushes = 0
        for zone in zones:
            if not zone.active:
                continue
            for predator in registry.nearby(zone.x, zone.y, zone.radius, kind=EntityKind.PREDATOR):
                self.physics.push_away(predator, zone.x, zone.y, self.settings.toxin_repel_speed)
                pushes += 1

        if pushes:
            logger.debug("predators_repelled", pushes=pushes)
        return pushes
