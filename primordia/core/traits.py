"""Trait system — permanent upgrades bought with evolution points, and cooldown-gated abilities."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional, Protocol

import structlog

from primordia.bus.events import AudioCues, EffectEvent, EffectKinds
from primordia.config import Settings
from primordia.core.entity import EntityKind
from primordia.core.player import PlayerState

if TYPE_CHECKING:
    from primordia.core.session import GameSession

logger = structlog.get_logger()

ABILITY_COLOR = "#00ffff"

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


class TraitName(str, Enum):
    """Every purchasable trait."""

    SPEED = "speed"
    SIZE = "size"
    DEFENSE = "defense"
    ABSORPTION = "absorption"
    SPEED_BURST = "speed_burst"
    TOXIN = "toxin"
    ALLY = "ally"

    @property
    def is_unlock(self) -> bool:
        return self in UNLOCK_TRAITS

    @classmethod
    def parse(cls, raw: str) -> Optional[TraitName]:
        """Resolve a trait name from UI input, accepting camelCase and dashes."""
        text = raw.strip()
        if not text.isupper():
            text = _CAMEL_BOUNDARY.sub("_", text)
        normalized = text.lower().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            return None


UNLOCK_TRAITS = frozenset({TraitName.SPEED_BURST, TraitName.TOXIN, TraitName.ALLY})


class PurchaseRejection(str, Enum):
    INSUFFICIENT_POINTS = "insufficient_points"
    UNKNOWN_TRAIT = "unknown_trait"
    ALREADY_UNLOCKED = "already_unlocked"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class PurchaseResult:
    """Outcome of a trait purchase request."""

    accepted: bool
    trait: Optional[str] = None
    cost: int = 0
    reason: Optional[PurchaseRejection] = None

    @classmethod
    def rejected(cls, reason: PurchaseRejection, trait: Optional[str] = None, cost: int = 0) -> PurchaseResult:
        return cls(accepted=False, trait=trait, cost=cost, reason=reason)


def trait_bonus(settings: Settings, level: int) -> float:
    """Fractional bonus granted by a defense or absorption level, capped."""
    return min(level * settings.trait_bonus_per_level, settings.trait_bonus_cap)


class TraitShop:
    """Prices and applies trait purchases.

    Numeric traits get pricier with every level; unlocks have a fixed
    price and can be bought once.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._unlock_costs = {
            TraitName.SPEED_BURST: settings.speed_burst_unlock_cost,
            TraitName.TOXIN: settings.toxin_unlock_cost,
            TraitName.ALLY: settings.ally_unlock_cost,
        }

    def cost(self, player: PlayerState, trait: TraitName) -> int:
        if trait.is_unlock:
            return self._unlock_costs[trait]
        level = getattr(player.traits, trait.value)
        return self.settings.trait_base_cost * (level + 1)

    def purchase(self, player: PlayerState, trait_name: str) -> PurchaseResult:
        """Validate and apply a purchase.

        Args:
            player: Player whose points and traits change on success.
            trait_name: Trait requested by the UI.

        Returns:
            PurchaseResult; on rejection nothing on the player changes.
        """
        trait = TraitName.parse(trait_name)
        if trait is None:
            logger.warning("trait_purchase_rejected", trait=trait_name, reason=PurchaseRejection.UNKNOWN_TRAIT.value)
            return PurchaseResult.rejected(PurchaseRejection.UNKNOWN_TRAIT, trait=trait_name)

        if trait.is_unlock and getattr(player.traits, trait.value):
            logger.info("trait_purchase_rejected", trait=trait.value, reason=PurchaseRejection.ALREADY_UNLOCKED.value)
            return PurchaseResult.rejected(PurchaseRejection.ALREADY_UNLOCKED, trait=trait.value)

        cost = self.cost(player, trait)
        if player.evolution_points < cost:
            logger.info(
                "trait_purchase_rejected",
                trait=trait.value,
                reason=PurchaseRejection.INSUFFICIENT_POINTS.value,
                cost=cost,
                available=player.evolution_points,
            )
            return PurchaseResult.rejected(PurchaseRejection.INSUFFICIENT_POINTS, trait=trait.value, cost=cost)

        player.evolution_points -= cost
        if trait.is_unlock:
            setattr(player.traits, trait.value, True)
        else:
            setattr(player.traits, trait.value, getattr(player.traits, trait.value) + 1)

        logger.info(
            "trait_purchased",
            trait=trait.value,
            cost=cost,
            remaining_points=player.evolution_points,
        )
        return PurchaseResult(accepted=True, trait=trait.value, cost=cost)


# -----------------------------------------------------------------------------
# Abilities
# -----------------------------------------------------------------------------


class AbilityName(str, Enum):
    """Abilities; values match the unlock flag and cooldown field names."""

    SPEED_BURST = "speed_burst"
    TOXIN = "toxin"
    ALLY = "ally"


@dataclass
class ToxinZone:
    """A short-lived area that pushes predators away."""

    x: float
    y: float
    radius: float
    ticks_left: int

    @property
    def active(self) -> bool:
        return self.ticks_left > 0

    def tick(self) -> None:
        self.ticks_left = max(0, self.ticks_left - 1)


class Ability(Protocol):
    """Protocol for activatable abilities.

    ``activate`` runs only after the AbilitySystem has validated the
    request and deducted the energy cost.
    """

    name: AbilityName
    cost: float
    cooldown: int

    def activate(self, session: GameSession) -> None: ...


class SpeedBurst:
    """Doubles movement speed while its cooldown counter runs."""

    name = AbilityName.SPEED_BURST

    def __init__(self, settings: Settings) -> None:
        self.cost = settings.speed_burst_cost
        self.cooldown = settings.speed_burst_cooldown

    def activate(self, session: GameSession) -> None:
        session.emit_feedback("Speed Burst!", ABILITY_COLOR)
        session.emit_cue(AudioCues.SPEED_BURST)


class ToxinRelease:
    """Releases a toxin cloud that repels predators around the player."""

    name = AbilityName.TOXIN

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.cost = settings.toxin_cost
        self.cooldown = settings.toxin_cooldown

    def activate(self, session: GameSession) -> None:
        player = session.player
        radius = player.size * self.settings.toxin_radius_ratio
        session.toxin_zones.append(
            ToxinZone(x=player.x, y=player.y, radius=radius, ticks_left=self.settings.toxin_lifetime_ticks)
        )
        session.emit_feedback("Toxin Release!", ABILITY_COLOR)
        session.emit_particles(
            EffectEvent(
                kind=EffectKinds.TOXIN_CLOUD,
                x=player.x,
                y=player.y,
                color=ABILITY_COLOR,
                particles=self.settings.toxin_particles,
                radius=radius,
            )
        )
        session.emit_cue(AudioCues.TOXIN)


class AllySummon:
    """Spawns a helper organism next to the player."""

    name = AbilityName.ALLY

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.cost = settings.ally_cost
        self.cooldown = settings.ally_cooldown

    def activate(self, session: GameSession) -> None:
        player = session.player
        angle = session.rng.uniform(0.0, math.pi * 2)
        distance = player.size * self.settings.ally_spawn_distance_ratio

        # Offset from the player's current position, not from the origin.
        # Anchoring on a defaulted zero would pin every ally near (0, 0).
        x = player.x + math.cos(angle) * distance
        y = player.y + math.sin(angle) * distance

        session.registry.spawn(
            EntityKind.ALLY,
            size_hint=player.size * self.settings.ally_size_ratio,
            x=x,
            y=y,
        )
        session.emit_feedback("Ally Spawned!", ABILITY_COLOR)
        session.emit_cue(AudioCues.ALLY)


class AbilitySystem:
    """Gatekeeper for ability activation.

    A request is rejected without any state change when the ability is
    locked, still cooling down, unaffordable, or the game is paused/over.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.abilities: dict[AbilityName, Ability] = {
            AbilityName.SPEED_BURST: SpeedBurst(settings),
            AbilityName.TOXIN: ToxinRelease(settings),
            AbilityName.ALLY: AllySummon(settings),
        }

    def rejection_reason(self, session: GameSession, name: AbilityName) -> Optional[str]:
        """Return why an activation would be refused, or None if it is allowed."""
        if session.game_over:
            return "game_over"
        if session.is_paused:
            return "paused"
        if not getattr(session.player.traits, name.value):
            return "locked"
        if getattr(session.cooldowns, name.value) > 0:
            return "cooldown"
        if session.player.energy <= self.abilities[name].cost:
            return "insufficient_energy"
        return None

    def activate(self, session: GameSession, name: str) -> bool:
        """Try to activate an ability.

        Args:
            session: The owning game session.
            name: Ability name as requested by the input layer.

        Returns:
            bool: True if the ability fired, False if the request was rejected.
        """
        try:
            ability_name = AbilityName(name)
        except ValueError:
            logger.warning("ability_rejected", ability=name, reason="unknown_ability")
            return False

        reason = self.rejection_reason(session, ability_name)
        if reason is not None:
            logger.info("ability_rejected", ability=ability_name.value, reason=reason)
            return False

        ability = self.abilities[ability_name]
        session.player.energy -= ability.cost
        setattr(session.cooldowns, ability_name.value, ability.cooldown)
        ability.activate(session)

        logger.info(
            "ability_activated",
            ability=ability_name.value,
            energy=round(session.player.energy, 2),
            cooldown=ability.cooldown,
        )
        return True
