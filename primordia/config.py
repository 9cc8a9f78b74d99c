"""Configuration settings for Primordia — loaded from environment variables."""

from __future__ import annotations

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Game balance and runtime settings with env-driven overrides.

    All values can be overridden via environment variables prefixed with PRIMORDIA_.
    Example: PRIMORDIA_TICK_RATE_MS=16 overrides tick_rate_ms.
    """

    # Core simulation parameters
    tick_rate_ms: int = 33  # ~30 ticks per second
    world_half_extent: float = 500.0  # world spans [-500, 500] on both axes
    seed: Optional[int] = None

    # Population
    initial_entities: int = 20
    food_ratio: float = 0.8
    min_food: int = 10
    min_predators: int = 2
    spawn_batch_size: int = 2
    food_size_min: float = 2.0
    food_size_max: float = 5.0
    predator_scale_min: float = 0.8
    predator_scale_max: float = 1.6

    # Player
    initial_size: float = 5.0
    max_energy: float = 100.0
    base_speed: float = 2.0
    speed_per_level: float = 1.0
    burst_multiplier: float = 2.0

    # Energy economy
    move_energy_cost: float = 0.05
    burst_energy_drain: float = 0.2
    energy_regen_per_tick: float = 0.0
    predator_damage: float = 25.0
    damage_grace_ticks: int = 15

    # Growth and rewards
    growth_rate: float = 0.2
    size_trait_growth_bonus: float = 0.25
    predator_growth_multiplier: float = 1.5
    predator_reward_multiplier: int = 2
    ally_food_bonus: int = 1
    trait_bonus_per_level: float = 0.1
    trait_bonus_cap: float = 0.5

    # Trait costs (evolution points)
    trait_base_cost: int = 15
    speed_burst_unlock_cost: int = 20
    toxin_unlock_cost: int = 30
    ally_unlock_cost: int = 40

    # Abilities: activation energy cost and cooldown in ticks
    speed_burst_cost: float = 20.0
    speed_burst_cooldown: int = 60
    toxin_cost: float = 30.0
    toxin_cooldown: int = 90
    ally_cost: float = 40.0
    ally_cooldown: int = 300

    # Ability tuning
    ally_size_ratio: float = 0.6
    ally_spawn_distance_ratio: float = 2.0
    ally_speed: float = 1.5
    toxin_radius_ratio: float = 3.0
    toxin_lifetime_ticks: int = 60
    toxin_repel_speed: float = 4.0

    # Effects
    toxin_particles: int = 50
    absorb_particles: int = 10
    speed_trail_chance: float = 0.3

    # Logging
    log_level: str = "info"

    model_config = SettingsConfigDict(
        env_prefix="PRIMORDIA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
