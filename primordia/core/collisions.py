"""Collision and outcome resolution between the player, allies and world entities.

Outcomes:
- player vs food: food absorbed, player grows and earns points
- player vs predator, player large enough: predator absorbed for a bigger reward
- player vs predator, player too small: energy damage, predator knocked back,
  game over when energy hits zero
- ally vs food: food eaten, player earns a small bonus, ally does not grow

Each consumer (the player, then every ally in spawn order) resolves at most
one outcome per tick: the first overlapping entity in registry order wins.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

import structlog

from primordia.bus.events import AudioCues, EffectEvent, EffectKinds
from primordia.config import Settings
from primordia.core.economy import Economy
from primordia.core.entity import Entity, EntityKind
from primordia.core.world_physics import WorldPhysics

if TYPE_CHECKING:
    from primordia.core.session import GameSession

logger = structlog.get_logger()

DAMAGE_COLOR = "#ff0000"
REWARD_COLOR = "#ffff00"


@dataclass
class CollisionReport:
    """Summary of the outcomes applied during one resolution pass."""

    absorbed: list[Entity] = field(default_factory=list)
    eaten_by_allies: list[Entity] = field(default_factory=list)
    damage_taken: float = 0.0
    points_awarded: int = 0
    died: bool = False


class CollisionResolver:
    """Detects radius overlaps and applies the outcome table."""

    def __init__(self, settings: Settings, economy: Economy, physics: WorldPhysics) -> None:
        self.settings = settings
        self.economy = economy
        self.physics = physics

    def resolve(self, session: GameSession) -> CollisionReport:
        """Run one resolution pass over the current world.

        Args:
            session: The owning game session.

        Returns:
            CollisionReport describing what happened.

        Note:
            Expects the registry's spatial grid to reflect this tick's
            movement (rebuild_spatial_grid()).
        """
        report = CollisionReport()

        self._resolve_player(session, report)
        if report.died:
            return report

        self._resolve_allies(session, report)
        return report

    def _resolve_player(self, session: GameSession, report: CollisionReport) -> None:
        player = session.player
        registry = session.registry
        reach = player.radius + registry.largest_radius()

        for entity in registry.nearby(player.x, player.y, reach):
            if entity.removed or entity.kind is EntityKind.ALLY:
                continue
            if not entity.overlaps(player.x, player.y, player.radius):
                continue

            if entity.kind is EntityKind.FOOD:
                self._absorb(session, entity, report, predator=False)
                return

            if self.economy.can_absorb_predator(player, entity.size):
                self._absorb(session, entity, report, predator=True)
                return

            if self.economy.is_threatened_by(player, entity.size):
                if self._take_hit(session, entity, report):
                    return
            # Defense kept the player out of danger but it cannot eat this one yet

    def _absorb(self, session: GameSession, entity: Entity, report: CollisionReport, predator: bool) -> None:
        player = session.player
        stage_before = player.stage

        session.registry.remove(entity, reason="absorbed")
        growth, points = self.economy.absorb(player, entity.size, predator=predator)

        report.absorbed.append(entity)
        report.points_awarded += points

        logger.info(
            "entity_absorbed",
            kind=entity.kind.value,
            entity_size=round(entity.size, 2),
            growth=round(growth, 3),
            points=points,
            size=round(player.size, 2),
        )

        session.emit_particles(
            EffectEvent(
                kind=EffectKinds.ABSORB_BURST,
                x=entity.x,
                y=entity.y,
                color=entity.color,
                particles=self.settings.absorb_particles,
                radius=entity.radius,
            )
        )
        session.emit_feedback(f"+{points}", REWARD_COLOR)
        session.emit_cue(AudioCues.ABSORB)

        if player.stage is not stage_before:
            session.emit_feedback(f"Evolved: {player.stage.value}", REWARD_COLOR)

    def _take_hit(self, session: GameSession, predator: Entity, report: CollisionReport) -> bool:
        """Apply predator damage unless the player is still in its grace window.

        Returns:
            bool: True if damage was dealt (the player's outcome for this tick).
        """
        player = session.player
        if player.damage_grace > 0:
            return False

        damage = self.settings.predator_damage
        died = self.economy.apply_damage(player, damage)
        player.damage_grace = self.settings.damage_grace_ticks
        self.physics.separate(player, predator)

        report.damage_taken += damage
        logger.info(
            "player_damaged",
            predator_size=round(predator.size, 2),
            damage=damage,
            energy=round(player.energy, 2),
        )

        session.emit_feedback(f"-{damage:g}", DAMAGE_COLOR)
        session.emit_cue(AudioCues.DAMAGE)

        if died:
            report.died = True
            session.end_game()
        return True

    def _resolve_allies(self, session: GameSession, report: CollisionReport) -> None:
        registry = session.registry
        largest = registry.largest_radius()

        for ally in registry.entities(EntityKind.ALLY):
            meal = self._first_food_overlap(session, ally, largest)
            if meal is None:
                continue

            registry.remove(meal, reason="eaten_by_ally")
            report.eaten_by_allies.append(meal)

            bonus = self.settings.ally_food_bonus
            if bonus > 0:
                self.economy.award_points(session.player, bonus)
                report.points_awarded += bonus

            logger.debug("ally_ate_food", ally_id=ally.id, food_size=round(meal.size, 2), bonus=bonus)
            session.emit_particles(
                EffectEvent(
                    kind=EffectKinds.ABSORB_BURST,
                    x=meal.x,
                    y=meal.y,
                    color=meal.color,
                    particles=self.settings.absorb_particles,
                    radius=meal.radius,
                )
            )

    def _first_food_overlap(self, session: GameSession, ally: Entity, largest: float) -> Optional[Entity]:
        for food in session.registry.nearby(ally.x, ally.y, ally.radius + largest, kind=EntityKind.FOOD):
            if food.removed:
                continue
            if food.overlaps(ally.x, ally.y, ally.radius):
                return food
        return None
