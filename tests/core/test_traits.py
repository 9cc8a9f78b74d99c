"""Unit tests for the trait shop and ability activation."""

from __future__ import annotations

import math

import pytest

from primordia.bus.channels import Channels
from primordia.bus.event_bus import EventBus
from primordia.config import Settings
from primordia.core.entity import EntityKind
from primordia.core.session import GameSession
from primordia.core.traits import PurchaseRejection, TraitName, TraitShop, trait_bonus


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def session(bus: EventBus) -> GameSession:
    """Create an empty session with default balance."""
    return GameSession(Settings(seed=5), bus=bus, populate=False)


def record(bus: EventBus, channel: str) -> list:
    events: list = []
    bus.subscribe(channel, events.append)
    return events


# -----------------------------------------------------------------------------
# Trait names
# -----------------------------------------------------------------------------


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("speed", TraitName.SPEED),
        ("speedBurst", TraitName.SPEED_BURST),
        ("speed_burst", TraitName.SPEED_BURST),
        ("speed-burst", TraitName.SPEED_BURST),
        ("TOXIN", TraitName.TOXIN),
        (" ally ", TraitName.ALLY),
        ("wings", None),
    ],
)
def test_trait_name_parse(raw: str, expected):
    assert TraitName.parse(raw) is expected


def test_unlock_flags():
    assert TraitName.TOXIN.is_unlock
    assert not TraitName.DEFENSE.is_unlock


# -----------------------------------------------------------------------------
# Purchases
# -----------------------------------------------------------------------------


def test_purchase_rejected_when_points_short(session: GameSession):
    """Test 10 points against a cost of 15 changes nothing."""
    session.player.evolution_points = 10

    result = session.purchase_trait("speed")

    assert result.accepted is False
    assert result.reason is PurchaseRejection.INSUFFICIENT_POINTS
    assert result.cost == 15
    assert session.player.evolution_points == 10
    assert session.player.traits.speed == 0


def test_purchase_numeric_trait_raises_price(session: GameSession):
    session.player.evolution_points = 50

    result = session.purchase_trait("speed")

    assert result.accepted is True
    assert result.cost == 15
    assert session.player.evolution_points == 35
    assert session.player.traits.speed == 1
    assert session.trait_cost("speed") == 30


def test_purchase_does_not_touch_score(session: GameSession):
    session.player.evolution_points = 20
    session.player.score = 20

    session.purchase_trait("defense")

    assert session.player.evolution_points == 5
    assert session.player.score == 20


def test_unlock_can_only_be_bought_once(session: GameSession):
    session.player.evolution_points = 100

    first = session.purchase_trait("toxin")
    second = session.purchase_trait("toxin")

    assert first.accepted is True
    assert first.cost == 30
    assert session.player.traits.toxin is True
    assert second.accepted is False
    assert second.reason is PurchaseRejection.ALREADY_UNLOCKED
    assert session.player.evolution_points == 70


def test_unlock_costs(session: GameSession):
    assert session.trait_cost("speedBurst") == 20
    assert session.trait_cost("toxin") == 30
    assert session.trait_cost("ally") == 40
    assert session.trait_cost("nonsense") is None


def test_unknown_trait_rejected(session: GameSession):
    session.player.evolution_points = 100

    result = session.purchase_trait("wings")

    assert result.accepted is False
    assert result.reason is PurchaseRejection.UNKNOWN_TRAIT
    assert session.player.evolution_points == 100


def test_purchase_rejected_after_game_over(session: GameSession):
    session.player.evolution_points = 100
    session.end_game()

    result = session.purchase_trait("speed")

    assert result.reason is PurchaseRejection.GAME_OVER
    assert session.player.traits.speed == 0


def test_purchase_allowed_with_menu_open(session: GameSession):
    """Test that the evolution menu pauses the game but keeps the shop open."""
    session.player.evolution_points = 15
    session.toggle_evolution_menu()

    assert session.is_paused
    assert session.purchase_trait("absorption").accepted is True
    assert session.player.traits.absorption == 1


def test_shop_cost_scales_with_level():
    shop = TraitShop(Settings())
    session = GameSession(Settings(), populate=False)
    session.player.traits.size = 3

    assert shop.cost(session.player, TraitName.SIZE) == 60


def test_trait_bonus_is_capped():
    settings = Settings()
    assert trait_bonus(settings, 0) == 0.0
    assert trait_bonus(settings, 3) == pytest.approx(0.3)
    assert trait_bonus(settings, 9) == 0.5


# -----------------------------------------------------------------------------
# Abilities
# -----------------------------------------------------------------------------


def test_speed_burst_activation(session: GameSession, bus: EventBus):
    """Test energy 25 minus cost 20 leaves 5 with a 60-tick cooldown."""
    cues = record(bus, Channels.AUDIO)
    effects = record(bus, Channels.EFFECT)
    session.player.traits.speed_burst = True
    session.player.energy = 25.0

    assert session.activate_ability("speed_burst") is True

    assert session.player.energy == pytest.approx(5.0)
    assert session.cooldowns.speed_burst == 60
    assert [c.cue for c in cues] == ["speedburst"]
    assert [e.text for e in effects] == ["Speed Burst!"]


def test_ability_rejected_during_cooldown(session: GameSession):
    session.player.traits.speed_burst = True

    assert session.activate_ability("speed_burst") is True
    energy = session.player.energy

    assert session.activate_ability("speed_burst") is False
    assert session.player.energy == energy
    assert session.cooldowns.speed_burst == 60


def test_locked_ability_rejected(session: GameSession):
    assert session.activate_ability("toxin") is False
    assert session.player.energy == 100.0
    assert session.cooldowns.toxin == 0


def test_ability_needs_more_energy_than_cost(session: GameSession):
    session.player.traits.speed_burst = True
    session.player.energy = 20.0

    assert session.activate_ability("speed_burst") is False
    assert session.player.energy == 20.0


def test_ability_rejected_while_paused(session: GameSession):
    session.player.traits.speed_burst = True
    session.toggle_pause()

    assert session.activate_ability("speed_burst") is False
    assert session.cooldowns.speed_burst == 0


def test_ability_rejected_after_game_over(session: GameSession):
    session.player.traits.speed_burst = True
    session.end_game()

    assert session.activate_ability("speed_burst") is False


def test_unknown_ability(session: GameSession):
    assert session.activate_ability("teleport") is False


def test_toxin_release_creates_zone(session: GameSession, bus: EventBus):
    effects = record(bus, Channels.EFFECT)
    session.player.traits.toxin = True

    assert session.activate_ability("toxin") is True

    assert session.player.energy == pytest.approx(70.0)
    assert session.cooldowns.toxin == 90
    assert len(session.toxin_zones) == 1
    zone = session.toxin_zones[0]
    assert zone.radius == pytest.approx(15.0)
    assert zone.ticks_left == 60
    assert (zone.x, zone.y) == (0.0, 0.0)

    clouds = [e for e in effects if e.kind == "toxin_cloud"]
    assert len(clouds) == 1
    assert clouds[0].particles == 50
    assert clouds[0].radius == pytest.approx(15.0)


def test_toxin_cloud_suppressed_in_performance_mode(session: GameSession, bus: EventBus):
    effects = record(bus, Channels.EFFECT)
    session.player.traits.toxin = True
    session.toggle_performance_mode()

    assert session.activate_ability("toxin") is True

    assert len(session.toxin_zones) == 1
    assert not [e for e in effects if e.kind == "toxin_cloud"]
    assert "Toxin Release!" in [e.text for e in effects]


def test_ally_spawns_next_to_player(session: GameSession):
    """Test the ally appears two player sizes away from wherever the player is."""
    session.player.traits.ally = True
    session.player.x = 120.0
    session.player.y = -80.0

    assert session.activate_ability("ally") is True

    allies = list(session.registry.entities(EntityKind.ALLY))
    assert len(allies) == 1
    ally = allies[0]
    assert ally.size == pytest.approx(3.0)
    assert ally.color == "#00aa00"
    assert math.hypot(ally.x - 120.0, ally.y + 80.0) == pytest.approx(10.0)
    assert session.player.energy == pytest.approx(60.0)
    assert session.cooldowns.ally == 300
