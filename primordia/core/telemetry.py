"""Read-only game snapshots for the rendering and UI collaborators.

A snapshot is a frozen copy of everything a collaborator may display. It is
rebuilt after every executed tick; collaborators never touch live state.
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from primordia.core.session import GameSession


@dataclass(frozen=True)
class EntityView:
    """Position, scale and look of one live entity."""

    id: str
    kind: str
    x: float
    y: float
    size: float
    color: str


@dataclass(frozen=True)
class GameSnapshot:
    """Immutable view of a game session at a specific tick.

    Attributes:
        tick: Number of executed simulation ticks
        score: Total evolution points ever earned
        size: Player size
        stage: Player stage name
        energy: Current energy
        max_energy: Energy cap
        evolution_points: Unspent evolution points
        traits: Trait levels and unlock flags
        cooldowns: Remaining ticks per ability
        game_over: Whether the run has ended
        is_paused: Whether the simulation is paused
        show_evolution_menu: Whether the evolution menu is open
        performance_mode: Whether particle effects are suppressed
        muted: Whether audio cues should stay silent
        player_x: Player x position
        player_y: Player y position
        entities: Every live entity in registry order
        timestamp: Unix timestamp when the snapshot was taken
    """

    tick: int
    score: int
    size: float
    stage: str
    energy: float
    max_energy: float
    evolution_points: int
    traits: dict[str, Any]
    cooldowns: dict[str, int]
    game_over: bool
    is_paused: bool
    show_evolution_menu: bool
    performance_mode: bool
    muted: bool
    player_x: float
    player_y: float
    entities: tuple[EntityView, ...]
    timestamp: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def collect_snapshot(session: GameSession) -> GameSnapshot:
    """Collect a snapshot of the current session state.

    Args:
        session: The GameSession to read from.

    Returns:
        GameSnapshot sharing no mutable state with the session.
    """
    player = session.player
    entities = tuple(
        EntityView(
            id=e.id,
            kind=e.kind.value,
            x=e.x,
            y=e.y,
            size=e.size,
            color=e.color,
        )
        for e in session.registry.entities()
    )

    return GameSnapshot(
        tick=session.tick,
        score=player.score,
        size=player.size,
        stage=player.stage.value,
        energy=player.energy,
        max_energy=player.max_energy,
        evolution_points=player.evolution_points,
        traits=player.traits.as_dict(),
        cooldowns=session.cooldowns.as_dict(),
        game_over=session.game_over,
        is_paused=session.is_paused,
        show_evolution_menu=session.show_evolution_menu,
        performance_mode=session.performance_mode,
        muted=session.muted,
        player_x=player.x,
        player_y=player.y,
        entities=entities,
        timestamp=time.time(),
    )
