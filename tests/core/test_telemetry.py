"""Tests for game snapshot collection."""

from __future__ import annotations

import dataclasses

import pytest

from primordia.config import Settings
from primordia.core.entity import EntityKind
from primordia.core.session import GameSession
from primordia.core.telemetry import GameSnapshot, collect_snapshot


@pytest.fixture
def session() -> GameSession:
    """Create a session with a small known world."""
    session = GameSession(Settings(seed=8), populate=False)
    session.registry.spawn(EntityKind.FOOD, size_hint=3.0, x=50.0, y=60.0)
    session.registry.spawn(EntityKind.PREDATOR, size_hint=7.0, x=-80.0, y=10.0)
    session.player.evolution_points = 4
    session.player.score = 9
    session.player.traits.speed = 2
    session.cooldowns.toxin = 12
    session.tick = 77
    return session


def test_collect_snapshot(session: GameSession):
    snapshot = collect_snapshot(session)

    assert isinstance(snapshot, GameSnapshot)
    assert snapshot.tick == 77
    assert snapshot.score == 9
    assert snapshot.evolution_points == 4
    assert snapshot.size == 5.0
    assert snapshot.stage == "Cellular"
    assert snapshot.energy == 100.0
    assert snapshot.max_energy == 100.0
    assert snapshot.traits["speed"] == 2
    assert snapshot.traits["toxin"] is False
    assert snapshot.cooldowns == {"speed_burst": 0, "toxin": 12, "ally": 0}
    assert snapshot.game_over is False
    assert snapshot.timestamp > 0

    kinds = [view.kind for view in snapshot.entities]
    assert kinds == ["food", "predator"]
    assert snapshot.entities[0].x == 50.0
    assert snapshot.entities[1].color == "#ff0000"


def test_snapshot_is_detached_from_live_state(session: GameSession):
    """Test that later mutations never leak into an earlier snapshot."""
    snapshot = collect_snapshot(session)

    session.player.traits.speed = 5
    session.cooldowns.toxin = 0
    for entity in list(session.registry.entities()):
        session.registry.remove(entity)

    assert snapshot.traits["speed"] == 2
    assert snapshot.cooldowns["toxin"] == 12
    assert len(snapshot.entities) == 2


def test_snapshot_is_frozen(session: GameSession):
    snapshot = collect_snapshot(session)

    with pytest.raises(dataclasses.FrozenInstanceError):
        snapshot.tick = 1  # type: ignore[misc]


def test_snapshot_to_dict(session: GameSession):
    data = collect_snapshot(session).to_dict()

    assert data["tick"] == 77
    assert data["entities"][0]["kind"] == "food"
    assert set(data["cooldowns"]) == {"speed_burst", "toxin", "ally"}
