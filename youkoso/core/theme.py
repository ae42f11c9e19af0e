"""
Theme preference state.

The core only stores which appearance mode the user picked. ``Theme.SYSTEM`` is
passed through untouched; resolving it against the operating system is left to
customtkinter at the presentation boundary.
"""

import logging
from enum import Enum
from typing import Any, Callable, List, Union

logger = logging.getLogger(__name__)


class Theme(Enum):
    """Appearance modes. Values match the strings stored in the settings file."""
    SYSTEM = "System"
    LIGHT = "Light"
    DARK = "Dark"

    @classmethod
    def parse(cls, value: Union["Theme", str]) -> "Theme":
        """
        Convert a stored or user-supplied value to a Theme.

        Accepts Theme members and theme names in any letter case.

        Raises:
            ValueError: If the value does not name a theme.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            wanted = value.strip().lower()
            for theme in cls:
                if theme.value.lower() == wanted:
                    return theme
        raise ValueError(f"Unknown theme: {value!r}")


DEFAULT_THEME = Theme.SYSTEM


class ThemePreference:
    """
    Holds the current theme and notifies observers when it changes.

    Every transition is allowed. Observers are called with the new Theme and
    only when the value actually differs from the previous one.
    """

    def __init__(self, initial: Theme = DEFAULT_THEME):
        self._current = initial
        self._listeners: List[Callable[[Theme], Any]] = []

    @property
    def current(self) -> Theme:
        return self._current

    def subscribe(self, callback: Callable[[Theme], Any]) -> Callable[[], None]:
        """Register an observer; returns a callable that removes it again."""
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def set(self, theme: Theme) -> bool:
        """Switch to ``theme``. Returns True if observers were notified."""
        if theme == self._current:
            return False

        logger.info(f"Theme changed: {self._current.value} -> {theme.value}")
        self._current = theme
        for callback in list(self._listeners):
            try:
                callback(theme)
            except Exception as e:
                logger.error(f"Theme observer failed: {e}", exc_info=True)
        return True
