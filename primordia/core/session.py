"""Game session — the single owner of all mutable game state.

Collaborators read GameSnapshot objects and mutate the game only through
the methods below: pointer updates, ability activation, trait purchases,
the pause/menu/performance/mute toggles and restart.
"""

from __future__ import annotations

import random
from typing import Optional

import structlog

from primordia.bus.channels import Channels
from primordia.bus.event_bus import EventBus
from primordia.bus.events import AudioCue, AudioCues, EffectEvent, EffectKinds, GameOverEvent
from primordia.config import Settings
from primordia.core.economy import Economy
from primordia.core.entity_registry import EntityRegistry, HandleFactory
from primordia.core.player import Cooldowns, PlayerState, stage_for_size
from primordia.core.telemetry import GameSnapshot, collect_snapshot
from primordia.core.traits import (
    AbilitySystem,
    PurchaseRejection,
    PurchaseResult,
    ToxinZone,
    TraitName,
    TraitShop,
)
from primordia.core.world_physics import WorldPhysics

logger = structlog.get_logger()

NOTICE_COLOR = "#ffffff"


class GameSession:
    """One running game: player, world entities, flags and cooldowns.

    Exactly one PlayerState exists per session; it is replaced only by
    restart().
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        bus: Optional[EventBus] = None,
        rng: Optional[random.Random] = None,
        handle_factory: Optional[HandleFactory] = None,
        populate: bool = True,
    ) -> None:
        """Initialize a session and spawn the starting population.

        Args:
            settings: Balance settings; defaults are used when omitted.
            bus: Event bus for collaborator notifications.
            rng: Random source shared by every subsystem.
            handle_factory: Renderer hook producing opaque render handles.
            populate: Spawn the initial population (tests pass False).
        """
        self.settings = settings or Settings()
        self.bus = bus or EventBus()
        self.rng = rng or random.Random(self.settings.seed)

        self.physics = WorldPhysics(world_half_extent=self.settings.world_half_extent)
        self.registry = EntityRegistry(self.settings, rng=self.rng, bus=self.bus, handle_factory=handle_factory)
        self.economy = Economy(self.settings)
        self.shop = TraitShop(self.settings)
        self.abilities = AbilitySystem(self.settings)

        # Display preferences survive restarts
        self.performance_mode = False
        self.muted = False

        self._populate_on_reset = populate
        self._reset_state()
        if populate:
            self.registry.populate(self.settings.initial_entities, self.player.size)

    def _reset_state(self) -> None:
        initial_size = self.settings.initial_size
        self.player = PlayerState(
            size=initial_size,
            energy=self.settings.max_energy,
            max_energy=self.settings.max_energy,
            stage=stage_for_size(initial_size),
        )
        self.cooldowns = Cooldowns()
        self.toxin_zones: list[ToxinZone] = []
        self.pointer_x = 0.0
        self.pointer_y = 0.0
        self.tick = 0
        self.is_paused = False
        self.show_evolution_menu = False

    @property
    def game_over(self) -> bool:
        return not self.player.alive

    # -------------------------------------------------------------------------
    # Mutation entry points for collaborators
    # -------------------------------------------------------------------------

    def set_pointer(self, x: float, y: float) -> None:
        """Update the steering target (world coordinates)."""
        self.pointer_x = float(x)
        self.pointer_y = float(y)

    def activate_ability(self, name: str) -> bool:
        """Request an ability; returns False when the request is refused."""
        return self.abilities.activate(self, name)

    def purchase_trait(self, name: str) -> PurchaseResult:
        """Request a trait purchase on behalf of the UI."""
        if self.game_over:
            logger.info("trait_purchase_rejected", trait=name, reason=PurchaseRejection.GAME_OVER.value)
            return PurchaseResult.rejected(PurchaseRejection.GAME_OVER, trait=name)
        return self.shop.purchase(self.player, name)

    def trait_cost(self, name: str) -> Optional[int]:
        """Current price of a trait, or None for unknown names."""
        trait = TraitName.parse(name)
        if trait is None:
            return None
        return self.shop.cost(self.player, trait)

    def toggle_pause(self) -> bool:
        """Pause or resume the simulation.

        Returns:
            bool: False if the toggle was refused (game over, or the
            evolution menu is open and owns the pause).
        """
        if self.game_over:
            return False
        if self.show_evolution_menu:
            logger.info("pause_toggle_rejected", reason="evolution_menu_open")
            return False

        self.is_paused = not self.is_paused
        logger.info("pause_toggled", paused=self.is_paused, tick=self.tick)
        self.emit_feedback("Paused" if self.is_paused else "Resumed", NOTICE_COLOR)
        return True

    def toggle_evolution_menu(self) -> bool:
        """Open or close the evolution menu; the game is paused while it is open."""
        if self.game_over:
            return False

        self.show_evolution_menu = not self.show_evolution_menu
        self.is_paused = self.show_evolution_menu
        logger.info("evolution_menu_toggled", open=self.show_evolution_menu)
        return True

    def toggle_performance_mode(self) -> bool:
        self.performance_mode = not self.performance_mode
        state = "ON" if self.performance_mode else "OFF"
        logger.info("performance_mode_toggled", enabled=self.performance_mode)
        self.emit_feedback(f"Performance Mode: {state}", NOTICE_COLOR)
        return True

    def toggle_mute(self) -> bool:
        self.muted = not self.muted
        logger.info("mute_toggled", muted=self.muted)
        return True

    def restart(self) -> None:
        """Throw away the current run and start a fresh one."""
        logger.info("session_restarting", tick=self.tick, score=self.player.score)
        self.registry.clear()
        self._reset_state()
        if self._populate_on_reset:
            self.registry.populate(self.settings.initial_entities, self.player.size)

    def snapshot(self) -> GameSnapshot:
        return collect_snapshot(self)

    # -------------------------------------------------------------------------
    # Notifications used by the core subsystems
    # -------------------------------------------------------------------------

    def emit_feedback(self, text: str, color: str) -> None:
        """Floating text above the player."""
        self.bus.publish(
            Channels.EFFECT,
            EffectEvent(
                kind=EffectKinds.FEEDBACK_TEXT,
                x=self.player.x,
                y=self.player.y + 20,
                color=color,
                text=text,
            ),
        )

    def emit_particles(self, effect: EffectEvent) -> bool:
        """Particle effects; dropped entirely in performance mode.

        Returns:
            bool: True if the effect was published.
        """
        if self.performance_mode:
            return False
        self.bus.publish(Channels.EFFECT, effect)
        return True

    def emit_cue(self, cue: str) -> None:
        """Audio cue; always published, the audio side honours ``muted``."""
        self.bus.publish(Channels.AUDIO, AudioCue(cue=cue, muted=self.muted))

    def end_game(self) -> None:
        """Enter the terminal game-over state. Idempotent."""
        if not self.player.alive:
            return
        self.player.alive = False

        logger.info(
            "game_over",
            tick=self.tick,
            score=self.player.score,
            size=round(self.player.size, 2),
            stage=self.player.stage.value,
        )
        self.emit_feedback("Game Over", "#ff0000")
        self.emit_cue(AudioCues.GAME_OVER)
        self.bus.publish(
            Channels.GAME_OVER,
            GameOverEvent(
                tick=self.tick,
                score=self.player.score,
                size=self.player.size,
                stage=self.player.stage.value,
            ),
        )
