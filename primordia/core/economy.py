"""Energy, evolution points, growth and stage progression.

Energy only goes down in the baseline balance: movement, the speed burst
drain, ability costs and predator damage subtract from it. An optional
passive regeneration rate can be configured (``energy_regen_per_tick``).
Evolution points are earned by absorption and spent on traits.
"""

from __future__ import annotations

from typing import Optional

import structlog

from primordia.config import Settings
from primordia.core.player import PlayerState, Stage, stage_for_size
from primordia.core.traits import trait_bonus

logger = structlog.get_logger()


class Economy:
    """Numeric rules for the player's resources."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    # -------------------------------------------------------------------------
    # Energy
    # -------------------------------------------------------------------------

    def clamp_energy(self, player: PlayerState) -> None:
        player.energy = min(max(player.energy, 0.0), player.max_energy)

    def spend_energy(self, player: PlayerState, amount: float) -> float:
        """Subtract energy, never going below zero.

        Returns:
            The amount actually removed.
        """
        before = player.energy
        player.energy -= amount
        self.clamp_energy(player)
        return before - player.energy

    def apply_tick_costs(self, player: PlayerState, moved: bool, burst_active: bool) -> float:
        """Charge the per-tick upkeep and apply passive regeneration.

        Args:
            player: The player to charge.
            moved: Whether the player moved this tick.
            burst_active: Whether the speed burst was running this tick.

        Returns:
            Net energy change (negative when energy was spent).
        """
        before = player.energy
        cost = 0.0
        if moved:
            cost += self.settings.move_energy_cost
        if burst_active:
            cost += self.settings.burst_energy_drain

        player.energy += self.settings.energy_regen_per_tick - cost
        self.clamp_energy(player)
        return player.energy - before

    def apply_damage(self, player: PlayerState, amount: float) -> bool:
        """Take predator damage.

        Returns:
            bool: True if the hit drained the player's energy to zero.
        """
        self.spend_energy(player, amount)
        return player.energy <= 0

    # -------------------------------------------------------------------------
    # Growth and points
    # -------------------------------------------------------------------------

    def growth_for(self, player: PlayerState, target_size: float, predator: bool = False) -> float:
        """Size gained from absorbing something of ``target_size``."""
        growth = target_size * self.settings.growth_rate
        growth *= 1 + player.traits.size * self.settings.size_trait_growth_bonus
        if predator:
            growth *= self.settings.predator_growth_multiplier
        return growth

    def reward_for(self, target_size: float, predator: bool = False) -> int:
        """Evolution points earned from absorbing something of ``target_size``."""
        points = max(1, round(target_size))
        if predator:
            points *= self.settings.predator_reward_multiplier
        return points

    def award_points(self, player: PlayerState, points: int) -> None:
        if points <= 0:
            return
        player.evolution_points += points
        player.score += points

    def absorb(self, player: PlayerState, target_size: float, predator: bool = False) -> tuple[float, int]:
        """Grow the player and pay out points for an absorption.

        Returns:
            Tuple of (size gained, points awarded).
        """
        growth = self.growth_for(player, target_size, predator)
        points = self.reward_for(target_size, predator)

        player.size += growth
        self.award_points(player, points)
        self.update_stage(player)
        return growth, points

    # -------------------------------------------------------------------------
    # Outcome thresholds
    # -------------------------------------------------------------------------

    def can_absorb_predator(self, player: PlayerState, predator_size: float) -> bool:
        bonus = trait_bonus(self.settings, player.traits.absorption)
        return player.size >= predator_size * (1 - bonus)

    def is_threatened_by(self, player: PlayerState, predator_size: float) -> bool:
        bonus = trait_bonus(self.settings, player.traits.defense)
        return player.size < predator_size * (1 - bonus)

    # -------------------------------------------------------------------------
    # Stage
    # -------------------------------------------------------------------------

    def update_stage(self, player: PlayerState) -> Optional[Stage]:
        """Recompute the stage from size; stages never regress.

        Returns:
            The new stage if the player advanced, None otherwise.
        """
        candidate = stage_for_size(player.size)
        if candidate.rank <= player.stage.rank:
            return None

        previous = player.stage
        player.stage = candidate
        logger.info(
            "stage_advanced",
            previous=previous.value,
            stage=candidate.value,
            size=round(player.size, 2),
        )
        return candidate
