"""Event bus channel constants.

All channel names follow the convention: ch:<domain>:<event_type>
"""


class Channels:
    """Channel name constants.

    These channels carry notifications from the simulation core to the
    rendering, audio and UI collaborators. Collaborators only ever read
    from them; they mutate the game through GameSession methods.
    """

    # Core → Renderer
    # Payload: EntityCreated {entity_id, kind, x, y, size, color, render_handle}
    ENTITY_CREATED = "ch:entity:created"

    # Core → Renderer
    # Payload: EntityRemoved {entity_id, kind, x, y, render_handle, reason}
    ENTITY_REMOVED = "ch:entity:removed"

    # Core → Renderer
    # Payload: EffectEvent {kind, x, y, color, text, particles, radius}
    EFFECT = "ch:effect"

    # Core → Audio
    # Payload: AudioCue {cue, muted}
    AUDIO = "ch:audio"

    # Core → Renderer, UI
    # Payload: GameSnapshot
    SNAPSHOT = "ch:snapshot"

    # Core → UI, Audio
    # Payload: GameOverEvent {tick, score, size, stage}
    GAME_OVER = "ch:game:over"
