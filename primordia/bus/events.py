"""Event types published by the simulation core.

All events are plain dataclasses; collaborators receive the objects directly.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Optional


class AudioCues:
    """Named audio cues understood by the audio collaborator."""

    SPEED_BURST = "speedburst"
    TOXIN = "toxin"
    ALLY = "ally"
    ABSORB = "absorb"
    DAMAGE = "damage"
    GAME_OVER = "gameover"


class EffectKinds:
    """Kinds of transient visual effects."""

    FEEDBACK_TEXT = "feedback_text"
    ABSORB_BURST = "absorb_burst"
    TOXIN_CLOUD = "toxin_cloud"
    SPEED_TRAIL = "speed_trail"


@dataclass
class EntityCreated:
    """Published when an entity (food, predator or ally) enters the world.

    Attributes:
        entity_id: Unique identifier of the entity
        kind: "food" | "predator" | "ally"
        x: Spawn x position
        y: Spawn y position
        size: Entity size (also its collision radius)
        color: Hex color string
        render_handle: Opaque handle returned by the renderer's factory, if any
    """

    entity_id: str
    kind: str
    x: float
    y: float
    size: float
    color: str
    render_handle: Any = None


@dataclass
class EntityRemoved:
    """Published when an entity leaves the world (absorbed or cleared)."""

    entity_id: str
    kind: str
    x: float
    y: float
    render_handle: Any = None
    reason: str = "absorbed"  # 'absorbed' | 'eaten_by_ally' | 'cleared'


@dataclass
class EffectEvent:
    """Transient, non-authoritative visual effect for the renderer.

    Attributes:
        kind: One of EffectKinds
        x: Effect origin x
        y: Effect origin y
        color: Hex color string
        text: Feedback text (only for feedback_text effects)
        particles: Number of particles to emit (0 for text)
        radius: Spread radius of the particles
    """

    kind: str
    x: float
    y: float
    color: str
    text: Optional[str] = None
    particles: int = 0
    radius: float = 0.0


@dataclass
class AudioCue:
    """Fire-and-forget sound cue.

    The cue is emitted even while muted; ``muted`` tells the audio
    collaborator whether it should actually play.
    """

    cue: str
    muted: bool = False
    timestamp: float = field(default_factory=time.time)


@dataclass
class GameOverEvent:
    """Published once when the player dies."""

    tick: int
    score: int
    size: float
    stage: str
    timestamp: float = field(default_factory=time.time)
