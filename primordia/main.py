"""Primordia entry point — headless simulation runner.

Runs a game session at the configured tick rate with an autopilot standing
in for the mouse and keyboard: it reads snapshots, steers toward the
nearest food, spends points and fires abilities. Renderer and audio are
replaced by logging subscribers.

Can be run directly via `python -m primordia.main` or the `primordia` script.
"""

from __future__ import annotations

import asyncio
import math
import signal
from typing import Optional

import structlog

from primordia.bus.channels import Channels
from primordia.bus.event_bus import EventBus
from primordia.bus.events import AudioCue, GameOverEvent
from primordia.config import Settings
from primordia.core.engine import SimulationClock
from primordia.core.session import GameSession
from primordia.core.telemetry import GameSnapshot
from primordia.input import InputRouter

logger = structlog.get_logger()

# Cheapest-first shopping list for the autopilot
PURCHASE_ORDER = ("speed_burst", "speed", "absorption", "defense", "toxin", "size", "ally")


def configure_logging(level: str = "info") -> None:
    """Configure structured logging for the runner."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(min_level=level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


class Autopilot:
    """Scripted stand-in for the human player, driven by snapshots only."""

    def __init__(self, session: GameSession, router: InputRouter) -> None:
        self.session = session
        self.router = router

    def on_snapshot(self, snapshot: GameSnapshot) -> None:
        if snapshot.game_over:
            return

        target = self._nearest_edible(snapshot)
        if target is not None:
            self.session.set_pointer(target[0], target[1])

        for trait in PURCHASE_ORDER:
            if snapshot.traits.get(trait) is True:
                continue
            cost = self.session.trait_cost(trait)
            if cost is not None and cost <= snapshot.evolution_points:
                self.session.purchase_trait(trait)
                break

        if self._predator_close(snapshot):
            if self._ready(snapshot, "speed_burst"):
                self._press(" ")
            if self._ready(snapshot, "toxin"):
                self._press("t")
        if self._ready(snapshot, "ally"):
            self._press("a")

    def _ready(self, snapshot: GameSnapshot, ability: str) -> bool:
        return bool(snapshot.traits.get(ability)) and snapshot.cooldowns.get(ability, 0) == 0

    def _press(self, key: str) -> None:
        self.router.key_down(key)
        self.router.key_up(key)

    def _nearest_edible(self, snapshot: GameSnapshot) -> Optional[tuple[float, float]]:
        best: Optional[tuple[float, float]] = None
        best_dist = math.inf
        for entity in snapshot.entities:
            if entity.kind == "ally":
                continue
            if entity.kind == "predator" and entity.size > snapshot.size:
                continue
            dist = math.hypot(entity.x - snapshot.player_x, entity.y - snapshot.player_y)
            if dist < best_dist:
                best_dist = dist
                best = (entity.x, entity.y)
        return best

    def _predator_close(self, snapshot: GameSnapshot) -> bool:
        return any(
            entity.kind == "predator"
            and entity.size > snapshot.size
            and math.hypot(entity.x - snapshot.player_x, entity.y - snapshot.player_y) < snapshot.size * 4
            for entity in snapshot.entities
        )


class SimulationRunner:
    """Manages the headless session lifecycle and graceful shutdown."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()
        self.bus = EventBus()
        self.session = GameSession(self.settings, bus=self.bus)
        self.clock = SimulationClock(self.session)
        self.router = InputRouter(self.session)
        self.autopilot = Autopilot(self.session, self.router)

    def _wire_collaborators(self) -> None:
        def _on_audio(cue: AudioCue) -> None:
            if not cue.muted:
                logger.debug("audio_cue", cue=cue.cue)

        def _on_game_over(event: GameOverEvent) -> None:
            logger.info("run_finished", tick=event.tick, score=event.score, stage=event.stage)

        self.bus.subscribe(Channels.AUDIO, _on_audio, AudioCue)
        self.bus.subscribe(Channels.GAME_OVER, _on_game_over, GameOverEvent)
        self.bus.subscribe(Channels.SNAPSHOT, self.autopilot.on_snapshot, GameSnapshot)

    async def run(self, max_ticks: Optional[int] = None) -> GameSnapshot:
        """Run the session until game over, shutdown signal or ``max_ticks``.

        Returns:
            The final snapshot.
        """
        logger.info("primordia_starting", seed=self.settings.seed, tick_rate_ms=self.settings.tick_rate_ms)
        self._wire_collaborators()

        def handle_shutdown(sig: int) -> None:
            logger.info("shutdown_signal_received", signal=sig)
            self.clock.stop()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, lambda s=sig: handle_shutdown(s))
            except NotImplementedError:
                # Signal handlers are unavailable on some platforms (Windows)
                pass

        await self.clock.run(max_ticks=max_ticks)

        final = self.clock.latest_snapshot
        logger.info(
            "primordia_stopped",
            tick=final.tick,
            score=final.score,
            size=round(final.size, 2),
            stage=final.stage,
            game_over=final.game_over,
        )
        return final


async def main() -> None:
    """Main entry point."""
    settings = Settings()
    configure_logging(settings.log_level)
    runner = SimulationRunner(settings)
    try:
        await runner.run()
    except KeyboardInterrupt:
        logger.info("keyboard_interrupt_received")
    except Exception as exc:
        logger.error("fatal_error", error=str(exc), error_type=type(exc).__name__)
        raise


def cli() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    cli()
