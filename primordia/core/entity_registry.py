"""Entity registry with spawning, removal and spatial hashing for proximity queries."""

from __future__ import annotations

import random
import uuid
from collections import defaultdict
from typing import Any, Callable, Iterator, Optional

import structlog

from primordia.bus.channels import Channels
from primordia.bus.event_bus import EventBus
from primordia.bus.events import EntityCreated, EntityRemoved
from primordia.config import Settings
from primordia.core.entity import KIND_COLORS, Entity, EntityKind

logger = structlog.get_logger()

HandleFactory = Callable[[Entity], Any]


class EntityRegistry:
    """Owns every food, predator and ally entity in the world.

    Provides spawning (with the population policy), removal, ordered
    iteration and spatial queries. Iteration order is spawn order, which
    is also the tie-break order for simultaneous collisions.
    """

    # Spatial hash grid cell size (50x50 world units)
    CELL_SIZE = 50

    def __init__(
        self,
        settings: Settings,
        rng: Optional[random.Random] = None,
        bus: Optional[EventBus] = None,
        handle_factory: Optional[HandleFactory] = None,
    ) -> None:
        """Initialize the registry.

        Args:
            settings: Balance settings (spawn sizes, floors, world extent).
            rng: Random source; a fresh seeded one is created when omitted.
            bus: Event bus for creation/removal notifications.
            handle_factory: Renderer hook called once per spawned entity;
                its return value is stored as the opaque render handle.
        """
        self.settings = settings
        self.rng = rng or random.Random(settings.seed)
        self.bus = bus
        self.handle_factory = handle_factory

        self._entities: dict[str, Entity] = {}
        self._spatial_grid: dict[tuple[int, int], set[str]] = defaultdict(set)
        self._next_seq = 0

    # -------------------------------------------------------------------------
    # Spawning
    # -------------------------------------------------------------------------

    def spawn(
        self,
        kind: EntityKind,
        size_hint: Optional[float] = None,
        x: Optional[float] = None,
        y: Optional[float] = None,
    ) -> Entity:
        """Spawn a new entity in the world.

        Args:
            kind: Entity kind.
            size_hint: Explicit size; when None the kind's random size policy applies.
            x: Spawn x; random within the world when None.
            y: Spawn y; random within the world when None.

        Returns:
            The newly created entity.
        """
        size = size_hint if size_hint is not None else self.random_size(kind)
        if x is None:
            x = self._random_coord()
        if y is None:
            y = self._random_coord()

        entity = Entity(
            id=str(uuid.uuid4()),
            kind=kind,
            x=x,
            y=y,
            size=size,
            color=KIND_COLORS[kind],
            seq=self._next_seq,
        )
        self._next_seq += 1

        if self.handle_factory is not None:
            entity.render_handle = self.handle_factory(entity)

        self._entities[entity.id] = entity
        self._add_to_spatial_grid(entity)

        logger.debug(
            "entity_spawned",
            entity_id=entity.id,
            kind=kind.value,
            x=round(x, 1),
            y=round(y, 1),
            size=round(size, 2),
        )

        if self.bus is not None:
            self.bus.publish(
                Channels.ENTITY_CREATED,
                EntityCreated(
                    entity_id=entity.id,
                    kind=kind.value,
                    x=entity.x,
                    y=entity.y,
                    size=entity.size,
                    color=entity.color,
                    render_handle=entity.render_handle,
                ),
            )

        return entity

    def random_size(self, kind: EntityKind, player_size: Optional[float] = None) -> float:
        """Draw a size for a new entity of the given kind.

        Food is small and fixed-range; predators scale with the player so
        difficulty tracks growth.
        """
        if player_size is None:
            player_size = self.settings.initial_size

        if kind is EntityKind.FOOD:
            return self.rng.uniform(self.settings.food_size_min, self.settings.food_size_max)
        if kind is EntityKind.PREDATOR:
            scale = self.rng.uniform(self.settings.predator_scale_min, self.settings.predator_scale_max)
            return player_size * scale
        return player_size * self.settings.ally_size_ratio

    def populate(self, count: int, player_size: float) -> list[Entity]:
        """Spawn the initial population at the configured food/predator ratio.

        Args:
            count: Number of entities to spawn.
            player_size: Current player size (predator scaling).

        Returns:
            The spawned entities in spawn order.
        """
        spawned: list[Entity] = []
        for _ in range(count):
            kind = EntityKind.FOOD if self.rng.random() < self.settings.food_ratio else EntityKind.PREDATOR
            spawned.append(self.spawn(kind, size_hint=self.random_size(kind, player_size)))

        logger.info(
            "population_spawned",
            count=len(spawned),
            food=self.count(EntityKind.FOOD),
            predators=self.count(EntityKind.PREDATOR),
        )
        return spawned

    def maintain_population(self, player_size: float) -> int:
        """Refill food and predators that fell below their floors.

        At most ``spawn_batch_size`` entities of each kind are added per call
        so a depleted area refills over a few ticks.

        Returns:
            Number of entities spawned this call.
        """
        spawned = 0
        floors = (
            (EntityKind.FOOD, self.settings.min_food),
            (EntityKind.PREDATOR, self.settings.min_predators),
        )
        for kind, floor in floors:
            missing = floor - self.count(kind)
            for _ in range(min(max(missing, 0), self.settings.spawn_batch_size)):
                self.spawn(kind, size_hint=self.random_size(kind, player_size))
                spawned += 1

        if spawned > 0:
            logger.debug("population_refilled", count=spawned, total=self.count())

        return spawned

    def _random_coord(self) -> float:
        extent = self.settings.world_half_extent
        return self.rng.uniform(-extent, extent)

    # -------------------------------------------------------------------------
    # Removal and lookup
    # -------------------------------------------------------------------------

    def remove(self, entity: Entity, reason: str = "absorbed") -> bool:
        """Remove an entity from the world.

        Args:
            entity: The entity to remove.
            reason: Removal reason forwarded to the renderer notification.

        Returns:
            bool: True if entity was removed, False if it wasn't registered.
        """
        if entity.id not in self._entities:
            logger.warning("entity_remove_failed", entity_id=entity.id, reason="not_found")
            return False

        self._remove_from_spatial_grid(entity)
        del self._entities[entity.id]
        entity.removed = True

        logger.debug("entity_removed", entity_id=entity.id, kind=entity.kind.value, reason=reason)

        if self.bus is not None:
            self.bus.publish(
                Channels.ENTITY_REMOVED,
                EntityRemoved(
                    entity_id=entity.id,
                    kind=entity.kind.value,
                    x=entity.x,
                    y=entity.y,
                    render_handle=entity.render_handle,
                    reason=reason,
                ),
            )
        return True

    def get(self, entity_id: str) -> Optional[Entity]:
        return self._entities.get(entity_id)

    def __contains__(self, entity: object) -> bool:
        return isinstance(entity, Entity) and entity.id in self._entities

    def entities(self, kind: Optional[EntityKind] = None) -> Iterator[Entity]:
        """Iterate live entities in spawn order.

        The pass works on a snapshot of the current population: entities
        spawned during the pass are not visited, entities removed during
        the pass are skipped once reached, and nobody is visited twice.
        Each call starts a fresh pass.

        Args:
            kind: Optional filter by entity kind.
        """
        for entity in list(self._entities.values()):
            if entity.removed:
                continue
            if kind is not None and entity.kind is not kind:
                continue
            yield entity

    def count(self, kind: Optional[EntityKind] = None) -> int:
        """Get the number of live entities, optionally of one kind."""
        if kind is None:
            return len(self._entities)
        return sum(1 for e in self._entities.values() if e.kind is kind)

    def largest_radius(self) -> float:
        """Largest radius of any live entity (0.0 when empty)."""
        return max((e.radius for e in self._entities.values()), default=0.0)

    def nearest(self, kind: EntityKind, x: float, y: float) -> Optional[Entity]:
        """Find the closest live entity of a kind by straight-line distance.

        Linear scan; populations are tens of entities. Ties go to the
        earlier-spawned entity.
        """
        nearest_entity: Optional[Entity] = None
        min_dist = float("inf")

        for entity in self._entities.values():
            if entity.kind is not kind:
                continue
            dist = entity.distance_to(x, y)
            if dist < min_dist:
                min_dist = dist
                nearest_entity = entity

        return nearest_entity

    # -------------------------------------------------------------------------
    # Spatial Hashing
    # -------------------------------------------------------------------------

    def _get_cell_coords(self, x: float, y: float) -> tuple[int, int]:
        cell_x = int(x // self.CELL_SIZE)
        cell_y = int(y // self.CELL_SIZE)
        return (cell_x, cell_y)

    def _add_to_spatial_grid(self, entity: Entity) -> None:
        cell = self._get_cell_coords(entity.x, entity.y)
        self._spatial_grid[cell].add(entity.id)

    def _remove_from_spatial_grid(self, entity: Entity) -> None:
        cell = self._get_cell_coords(entity.x, entity.y)
        self._spatial_grid[cell].discard(entity.id)

        # Clean up empty cells
        if not self._spatial_grid[cell]:
            del self._spatial_grid[cell]

    def rebuild_spatial_grid(self) -> None:
        """Rebuild the spatial hash grid from scratch.

        Called each tick after movement so proximity queries see the
        current positions of allies and repelled predators.
        """
        self._spatial_grid.clear()

        for entity in self._entities.values():
            self._add_to_spatial_grid(entity)

    def nearby(
        self,
        x: float,
        y: float,
        radius: float,
        kind: Optional[EntityKind] = None,
    ) -> list[Entity]:
        """Find live entities whose centre lies within a radius of a point.

        Args:
            x: Center x coordinate.
            y: Center y coordinate.
            radius: Search radius in world units.
            kind: Optional filter by entity kind.

        Returns:
            Matching entities in spawn order.

        Note:
            Uses the spatial hash grid. Make sure rebuild_spatial_grid() was
            called after the last movement.
        """
        cell_x_min = int((x - radius) // self.CELL_SIZE)
        cell_x_max = int((x + radius) // self.CELL_SIZE)
        cell_y_min = int((y - radius) // self.CELL_SIZE)
        cell_y_max = int((y + radius) // self.CELL_SIZE)

        nearby_ids: set[str] = set()
        for cx in range(cell_x_min, cell_x_max + 1):
            for cy in range(cell_y_min, cell_y_max + 1):
                cell = (cx, cy)
                if cell in self._spatial_grid:
                    nearby_ids.update(self._spatial_grid[cell])

        found: list[Entity] = []
        radius_squared = radius * radius

        for entity_id in nearby_ids:
            entity = self._entities.get(entity_id)
            if entity is None:
                continue
            if kind is not None and entity.kind is not kind:
                continue
            dx = entity.x - x
            dy = entity.y - y
            if dx * dx + dy * dy <= radius_squared:
                found.append(entity)

        found.sort(key=lambda e: e.seq)
        return found

    def clear(self) -> None:
        """Remove all entities, notifying the renderer for each."""
        for entity in list(self._entities.values()):
            self.remove(entity, reason="cleared")
        self._spatial_grid.clear()
        logger.info("entity_registry_cleared")
