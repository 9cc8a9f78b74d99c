"""Simulation clock — the fixed-order tick pipeline and the fixed-rate run loop.

This module provides the SimulationClock which drives a GameSession one
fixed step at a time. A host rendering loop calls tick() once per frame;
headless runs use run(), which paces ticks with asyncio.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import structlog

from primordia.bus.channels import Channels
from primordia.bus.events import EffectEvent, EffectKinds
from primordia.core.collisions import CollisionReport, CollisionResolver
from primordia.core.session import GameSession
from primordia.core.steering import MovementReport, Steering
from primordia.core.telemetry import GameSnapshot

logger = structlog.get_logger()


class SimulationClock:
    """Runs the tick pipeline for one game session.

    Pipeline order per tick (fixed):
    1. Movement: player toward the pointer, allies toward food, toxin repulsion
    2. Collision and outcome resolution
    3. Cooldown, toxin zone and damage-grace countdown
    4. Economy: upkeep energy costs and stage recomputation
    5. Population floor maintenance
    6. Snapshot publication

    Nothing executes while the session is paused or over, so all counters
    stay frozen in place until it resumes.
    """

    def __init__(
        self,
        session: GameSession,
        steering: Optional[Steering] = None,
        resolver: Optional[CollisionResolver] = None,
    ) -> None:
        """Initialize the clock.

        Args:
            session: The game session to drive.
            steering: Movement component; built from the session when omitted.
            resolver: Collision component; built from the session when omitted.
        """
        self.session = session
        self.settings = session.settings
        self.steering = steering or Steering(session.settings, session.physics)
        self.resolver = resolver or CollisionResolver(session.settings, session.economy, session.physics)

        self.running = False
        self.stats_interval = 300  # Log stats every 300 ticks
        self.latest_snapshot: GameSnapshot = session.snapshot()
        self.last_report: Optional[CollisionReport] = None

    def tick(self) -> bool:
        """Execute one fixed simulation step.

        Returns:
            bool: True if a step ran, False if it was skipped (paused or over).
        """
        session = self.session
        if session.game_over or session.is_paused:
            return False

        session.tick += 1

        movement = self._move()
        self.last_report = self.resolver.resolve(session)

        if not session.game_over:
            self._count_down()
            self._settle_economy(movement)
            session.registry.maintain_population(session.player.size)

        self._publish_snapshot()

        if session.tick % self.stats_interval == 0:
            self._log_statistics()

        return True

    def _move(self) -> MovementReport:
        session = self.session
        registry = session.registry
        registry.rebuild_spatial_grid()

        burst_active = session.cooldowns.speed_burst > 0
        movement = self.steering.move_player(
            session.player,
            session.pointer_x,
            session.pointer_y,
            burst_active=burst_active,
        )

        if movement.burst_active and movement.moved and session.rng.random() < self.settings.speed_trail_chance:
            session.emit_particles(
                EffectEvent(
                    kind=EffectKinds.SPEED_TRAIL,
                    x=session.player.x,
                    y=session.player.y,
                    color=session.player.color,
                    particles=3,
                    radius=session.player.radius,
                )
            )

        self.steering.move_allies(registry)
        self.steering.repel_predators(session.toxin_zones, registry)

        registry.rebuild_spatial_grid()
        return movement

    def _count_down(self) -> None:
        session = self.session
        session.cooldowns.tick()

        for zone in session.toxin_zones:
            zone.tick()
        session.toxin_zones = [zone for zone in session.toxin_zones if zone.active]

        if session.player.damage_grace > 0:
            session.player.damage_grace -= 1

    def _settle_economy(self, movement: MovementReport) -> None:
        player = self.session.player
        self.session.economy.apply_tick_costs(player, moved=movement.moved, burst_active=movement.burst_active)
        self.session.economy.update_stage(player)

    def _publish_snapshot(self) -> None:
        self.latest_snapshot = self.session.snapshot()
        self.session.bus.publish(Channels.SNAPSHOT, self.latest_snapshot)

    def _log_statistics(self) -> None:
        session = self.session
        logger.info(
            "simulation_stats",
            tick=session.tick,
            size=round(session.player.size, 2),
            stage=session.player.stage.value,
            energy=round(session.player.energy, 1),
            points=session.player.evolution_points,
            entities=session.registry.count(),
        )

    async def run(self, max_ticks: Optional[int] = None) -> None:
        """Fixed-rate loop for hosts without their own frame loop.

        Runs until stop() is called, the game ends, or ``max_ticks`` loop
        iterations have elapsed. Paused iterations still count toward
        ``max_ticks`` but do not advance the simulation.
        """
        self.running = True
        tick_budget = self.settings.tick_rate_ms / 1000.0
        loop = asyncio.get_running_loop()
        iterations = 0
        logger.info("clock_starting", tick_rate_ms=self.settings.tick_rate_ms)

        while self.running:
            if max_ticks is not None and iterations >= max_ticks:
                break
            iterations += 1
            tick_start = loop.time()

            try:
                self.tick()
            except Exception as exc:
                # Never let the simulation loop crash
                logger.error(
                    "tick_error",
                    tick=self.session.tick,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )

            if self.session.game_over:
                logger.info("clock_halted", reason="game_over", tick=self.session.tick)
                break

            tick_duration = loop.time() - tick_start
            if tick_duration > tick_budget:
                logger.warning(
                    "tick_overrun",
                    tick=self.session.tick,
                    duration_ms=tick_duration * 1000,
                    budget_ms=self.settings.tick_rate_ms,
                )

            await asyncio.sleep(max(0.0, tick_budget - tick_duration))

        self.running = False

    def stop(self) -> None:
        """Stop the run loop after the current iteration."""
        logger.info("clock_stopping", tick=self.session.tick)
        self.running = False
