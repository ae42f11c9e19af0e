"""
Binds the core ThemePreference to customtkinter's appearance mode.

This is the only place ``Theme.SYSTEM`` gets resolved: customtkinter follows
the operating system when it is given "System".

Theme changes are committed on a background worker, so the appearance call
is handed to ``schedule`` (the window's ``after``) and runs on the Tk thread.
"""

import logging
from typing import Callable, Optional

import customtkinter as ctk

from youkoso.core.theme import Theme, ThemePreference

logger = logging.getLogger(__name__)


def apply_theme(theme: Theme) -> None:
    ctk.set_appearance_mode(theme.value)
    logger.debug(f"Appearance mode set to {theme.value}")


def bind_theme(
    preference: ThemePreference,
    schedule: Optional[Callable[..., object]] = None,
) -> Callable[[], None]:
    """
    Apply the current theme now and on every change. Returns the unsubscribe hook.

    Args:
        preference: The ThemePreference to follow.
        schedule: ``schedule(func, *args)`` queues ``func`` on the UI thread.
            Without it changes are applied on the notifying thread.
    """
    apply_theme(preference.current)
    if schedule is None:
        return preference.subscribe(apply_theme)
    return preference.subscribe(lambda theme: schedule(apply_theme, theme))
