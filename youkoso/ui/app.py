"""
Youkoso Main Application Window
===============================

Root CustomTkinter window. It owns the AppContext (settings + session) for
the lifetime of the UI and the two background workers that keep disk and
network work off the event loop.

Key Responsibilities:
---------------------
- Theme orchestration: customtkinter's appearance mode follows the stored
  ThemePreference.
- Context lifecycle: open on start, persist and close on window close.
- Corrupt settings notice: shown once when the file could not be parsed.

Usage:
------
    >>> from youkoso.ui.app import App
    >>> app = App()
    >>> app.mainloop()
"""

import logging
from pathlib import Path
from typing import Optional

import customtkinter as ctk
from tkinter import messagebox

from youkoso.core.config import APP_ID, APP_NAME, GEOMETRY
from youkoso.core.context import AppContext
from youkoso.ui.settings_panel import SettingsPanel
from youkoso.ui.theme_binding import bind_theme
from youkoso.utils.background_worker import BackgroundWorker


class App(ctk.CTk):
    """
    Main application window.

    Attributes:
        context: The AppContext holding the settings controller and session manager.
        settings_worker: Serial worker for settings writes.
        network_worker: Worker for My Studio calls.
    """

    def __init__(self, config_path: Optional[Path] = None):
        super().__init__(className=APP_ID)

        self.logger = logging.getLogger(__name__)
        self.logger.info("Initializing main application window")

        self.title(APP_NAME)
        self.geometry(GEOMETRY)
        ctk.set_default_color_theme("blue")

        self.context = AppContext(config_path).open()
        self._unbind_theme = bind_theme(
            self.context.controller.theme,
            schedule=lambda func, *args: self.after(0, func, *args),
        )

        self.settings_worker = BackgroundWorker(name="Settings")
        self.network_worker = BackgroundWorker(name="Network")

        self.protocol("WM_DELETE_WINDOW", self.on_close)

        self.grid_rowconfigure(0, weight=1)
        self.grid_columnconfigure(0, weight=1)
        self.settings_panel = SettingsPanel(self, self)
        self.settings_panel.grid(row=0, column=0, padx=20, pady=20, sticky="nsew")

        corruption = self.context.controller.corruption
        if corruption is not None:
            self.after(100, lambda: messagebox.showwarning(
                APP_NAME,
                f"The settings file could not be read and defaults are in use.\n\n{corruption}"
            ))

    def on_close(self):
        """
        Orderly shutdown:
        1. Stop background workers (pending work is cancelled).
        2. Persist settings and release the session.
        3. Destroy the window.
        """
        self.logger.info("Application close requested - starting shutdown sequence")

        self.network_worker.shutdown()
        self.settings_worker.shutdown()
        self._unbind_theme()

        try:
            self.context.close()
        except Exception as e:
            self.logger.error(f"Error while closing application context: {e}", exc_info=True)

        self.logger.info("Destroying window and exiting")
        self.destroy()
