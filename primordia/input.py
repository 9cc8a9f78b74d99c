"""Input routing — translates raw pointer and key events into session calls.

Each key fires its intent once per key-down edge; held-key auto-repeat is
ignored until the key is released.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

import structlog

from primordia.core.session import GameSession
from primordia.core.traits import AbilityName

logger = structlog.get_logger()


class Intent(str, Enum):
    TOGGLE_EVOLUTION_MENU = "toggle_evolution_menu"
    SPEED_BURST = "activate_speed_burst"
    TOXIN = "activate_toxin"
    ALLY = "activate_ally"
    TOGGLE_PAUSE = "toggle_pause"
    TOGGLE_PERFORMANCE_MODE = "toggle_performance_mode"
    TOGGLE_MUTE = "toggle_mute"
    RESTART = "restart"


DEFAULT_KEYMAP: dict[str, Intent] = {
    "e": Intent.TOGGLE_EVOLUTION_MENU,
    " ": Intent.SPEED_BURST,
    "t": Intent.TOXIN,
    "a": Intent.ALLY,
    "p": Intent.TOGGLE_PAUSE,
    "f": Intent.TOGGLE_PERFORMANCE_MODE,
    "m": Intent.TOGGLE_MUTE,
    "r": Intent.RESTART,
}


class InputRouter:
    """Feeds pointer targets and key intents into a GameSession."""

    def __init__(self, session: GameSession, keymap: Optional[dict[str, Intent]] = None) -> None:
        self.session = session
        self.keymap = dict(keymap or DEFAULT_KEYMAP)
        self._held: set[str] = set()

    def pointer_moved(self, screen_x: float, screen_y: float, width: float, height: float) -> None:
        """Convert a screen position to world coordinates and retarget the player.

        The view is centred on the world origin with y pointing up.
        """
        world_x = screen_x - width / 2
        world_y = -(screen_y - height / 2)
        self.session.set_pointer(world_x, world_y)

    def key_down(self, key: str) -> bool:
        """Handle a key press.

        Returns:
            bool: True if an intent was dispatched and accepted.
        """
        normalized = key if key == " " else key.lower()
        if normalized in self._held:
            return False
        self._held.add(normalized)

        intent = self.keymap.get(normalized)
        if intent is None:
            return False
        return self.dispatch(intent)

    def key_up(self, key: str) -> None:
        normalized = key if key == " " else key.lower()
        self._held.discard(normalized)

    def dispatch(self, intent: Intent) -> bool:
        """Run the session call behind an intent."""
        session = self.session
        logger.debug("intent_dispatched", intent=intent.value)

        if intent is Intent.TOGGLE_EVOLUTION_MENU:
            return session.toggle_evolution_menu()
        if intent is Intent.SPEED_BURST:
            return session.activate_ability(AbilityName.SPEED_BURST.value)
        if intent is Intent.TOXIN:
            return session.activate_ability(AbilityName.TOXIN.value)
        if intent is Intent.ALLY:
            return session.activate_ability(AbilityName.ALLY.value)
        if intent is Intent.TOGGLE_PAUSE:
            return session.toggle_pause()
        if intent is Intent.TOGGLE_PERFORMANCE_MODE:
            return session.toggle_performance_mode()
        if intent is Intent.TOGGLE_MUTE:
            return session.toggle_mute()
        if intent is Intent.RESTART:
            # Restart is only offered on the game-over screen
            if not session.game_over:
                return False
            session.restart()
            return True
        return False
