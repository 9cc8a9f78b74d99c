"""Core simulation engine — session state, tick pipeline, entities, traits."""

from primordia.core.engine import SimulationClock
from primordia.core.entity import Entity, EntityKind
from primordia.core.session import GameSession
from primordia.core.telemetry import GameSnapshot

__all__ = ["SimulationClock", "Entity", "EntityKind", "GameSession", "GameSnapshot"]
