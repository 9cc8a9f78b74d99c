"""Tests for the SimulationClock tick pipeline and run loop."""

from __future__ import annotations

import pytest

from primordia.bus.channels import Channels
from primordia.bus.event_bus import EventBus
from primordia.config import Settings
from primordia.core.collisions import CollisionReport
from primordia.core.engine import SimulationClock
from primordia.core.entity import EntityKind
from primordia.core.player import Stage
from primordia.core.session import GameSession
from primordia.core.telemetry import GameSnapshot


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def session(bus: EventBus) -> GameSession:
    """Create an empty world with no population floor."""
    settings = Settings(seed=42, min_food=0, min_predators=0, tick_rate_ms=1)
    return GameSession(settings, bus=bus, populate=False)


@pytest.fixture
def clock(session: GameSession) -> SimulationClock:
    return SimulationClock(session)


class ExplodingResolver:
    """Collision stage that always fails."""

    def resolve(self, session: GameSession) -> CollisionReport:
        raise RuntimeError("boom")


class FatalResolver:
    """Collision stage that ends the game on its first call."""

    def __init__(self) -> None:
        self.calls = 0

    def resolve(self, session: GameSession) -> CollisionReport:
        self.calls += 1
        session.end_game()
        return CollisionReport(died=True)


def test_tick_advances_counter(clock: SimulationClock, session: GameSession):
    assert clock.tick() is True
    assert session.tick == 1


def test_player_walks_toward_pointer(clock: SimulationClock, session: GameSession):
    session.set_pointer(300.0, 0.0)

    for _ in range(10):
        clock.tick()

    assert session.player.x == pytest.approx(20.0)
    assert session.player.y == pytest.approx(0.0)
    assert session.player.energy == pytest.approx(99.5)


def test_pointer_on_player_costs_nothing(clock: SimulationClock, session: GameSession):
    clock.tick()

    assert session.player.x == 0.0
    assert session.player.energy == 100.0


def test_paused_tick_is_skipped(clock: SimulationClock, session: GameSession):
    """Test that nothing moves or counts down while paused."""
    session.player.traits.speed_burst = True
    session.activate_ability("speed_burst")
    session.set_pointer(300.0, 0.0)
    session.toggle_pause()

    for _ in range(5):
        assert clock.tick() is False

    assert session.tick == 0
    assert session.player.x == 0.0
    assert session.cooldowns.speed_burst == 60
    assert session.player.energy == pytest.approx(80.0)

    session.toggle_pause()
    assert clock.tick() is True
    assert session.cooldowns.speed_burst == 59


def test_speed_burst_lifecycle(clock: SimulationClock, session: GameSession):
    """Test 60 ticks at double speed followed by normal speed."""
    session.player.traits.speed_burst = True
    session.set_pointer(450.0, 0.0)
    assert session.activate_ability("speed_burst") is True
    assert session.player.energy == pytest.approx(80.0)

    for _ in range(60):
        clock.tick()

    assert session.player.x == pytest.approx(240.0)
    assert session.cooldowns.speed_burst == 0
    assert session.player.energy == pytest.approx(65.0)

    clock.tick()

    assert session.player.x == pytest.approx(242.0)
    assert session.player.energy == pytest.approx(64.95)


def test_toxin_zone_expires(clock: SimulationClock, session: GameSession):
    session.player.traits.toxin = True
    session.activate_ability("toxin")

    for _ in range(59):
        clock.tick()
    assert len(session.toxin_zones) == 1

    clock.tick()
    assert session.toxin_zones == []


def test_damage_grace_counts_down(clock: SimulationClock, session: GameSession):
    session.player.damage_grace = 3

    clock.tick()
    clock.tick()

    assert session.player.damage_grace == 1


def test_absorbing_food_through_the_pipeline(clock: SimulationClock, session: GameSession):
    food = session.registry.spawn(EntityKind.FOOD, size_hint=3.0, x=12.0, y=0.0)
    session.set_pointer(12.0, 0.0)

    for _ in range(3):
        clock.tick()

    assert food not in session.registry
    assert session.player.evolution_points == 3
    assert all(view.id != food.id for view in clock.latest_snapshot.entities)


def test_snapshot_published_every_tick(clock: SimulationClock, session: GameSession, bus: EventBus):
    snapshots: list[GameSnapshot] = []
    bus.subscribe(Channels.SNAPSHOT, snapshots.append, GameSnapshot)

    for _ in range(4):
        clock.tick()

    assert [s.tick for s in snapshots] == [1, 2, 3, 4]
    assert clock.latest_snapshot is snapshots[-1]


def test_game_over_freezes_world(clock: SimulationClock, session: GameSession):
    """Test that no tick runs once the game has ended."""
    session.set_pointer(300.0, 0.0)
    clock.tick()
    session.end_game()
    position = session.player.x

    assert clock.tick() is False
    assert session.player.x == position
    assert session.tick == 1


def test_lethal_predator_ends_game_in_pipeline(clock: SimulationClock, session: GameSession):
    session.player.energy = 10.0
    session.registry.spawn(EntityKind.PREDATOR, size_hint=8.0, x=6.0, y=0.0)

    clock.tick()

    assert session.game_over
    assert clock.latest_snapshot.game_over is True
    assert clock.tick() is False


def test_population_floor_maintained(bus: EventBus):
    settings = Settings(seed=9, min_food=4, min_predators=2, spawn_batch_size=2)
    session = GameSession(settings, bus=bus, populate=False)
    clock = SimulationClock(session)

    clock.tick()
    assert session.registry.count(EntityKind.FOOD) == 2
    assert session.registry.count(EntityKind.PREDATOR) == 2

    clock.tick()
    assert session.registry.count(EntityKind.FOOD) >= 3


def test_invariants_hold_over_long_run(bus: EventBus):
    """Test a seeded full-population run keeps every invariant."""
    session = GameSession(Settings(seed=1234), bus=bus)
    clock = SimulationClock(session)
    pointer = [(200.0, 150.0), (-300.0, 50.0), (100.0, -400.0), (-50.0, -50.0)]

    previous_size = session.player.size
    previous_stage = session.player.stage
    for step in range(500):
        if step % 50 == 0:
            session.set_pointer(*pointer[(step // 50) % len(pointer)])
        if not clock.tick():
            break

        player = session.player
        assert 0.0 <= player.energy <= player.max_energy
        assert player.size >= previous_size
        assert player.stage.rank >= previous_stage.rank
        assert player.score >= player.evolution_points >= 0
        assert all(value >= 0 for value in session.cooldowns.as_dict().values())
        extent = session.settings.world_half_extent
        assert -extent <= player.x <= extent
        assert -extent <= player.y <= extent
        assert all(not entity.removed for entity in session.registry.entities())
        previous_size = player.size
        previous_stage = player.stage

    assert session.player.stage.rank >= Stage.CELLULAR.rank


@pytest.mark.asyncio
async def test_run_stops_after_max_ticks(clock: SimulationClock, session: GameSession):
    await clock.run(max_ticks=5)

    assert session.tick == 5
    assert clock.running is False


@pytest.mark.asyncio
async def test_run_halts_on_game_over(session: GameSession):
    resolver = FatalResolver()
    clock = SimulationClock(session, resolver=resolver)

    await clock.run(max_ticks=50)

    assert resolver.calls == 1
    assert session.tick == 1
    assert session.game_over


@pytest.mark.asyncio
async def test_run_survives_tick_errors(session: GameSession):
    """Test that a failing stage is logged and the loop keeps going."""
    clock = SimulationClock(session, resolver=ExplodingResolver())

    await clock.run(max_ticks=3)

    assert session.tick == 3
    assert not session.game_over


@pytest.mark.asyncio
async def test_stop_ends_run(clock: SimulationClock, session: GameSession, bus: EventBus):
    def stop_at_three(snapshot: GameSnapshot) -> None:
        if snapshot.tick == 3:
            clock.stop()

    bus.subscribe(Channels.SNAPSHOT, stop_at_three, GameSnapshot)

    await clock.run(max_ticks=100)

    assert session.tick == 3
