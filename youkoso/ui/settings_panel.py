"""
Settings Panel
==============

Form for the user-editable settings: appearance theme and the My Studio
credential. Every edit is handed to the SettingsController on a background
worker; validation errors come back inline, save failures as a retryable
notice, and the connection indicator follows the SessionManager state.
"""

import logging
from concurrent.futures import Future

import customtkinter as ctk

from youkoso.core.errors import AuthRejected, AuthUnreachable, PersistFailed, ValidationError, YoukosoError
from youkoso.core.session import SessionState
from youkoso.core.theme import Theme

STATUS_TEXT = {
    SessionState.UNAUTHENTICATED: ("Not connected", "gray"),
    SessionState.AUTHENTICATING: ("Connecting...", "gray"),
    SessionState.AUTHENTICATED: ("Connected", "green"),
    SessionState.EXPIRED: ("Session expired", "orange"),
    SessionState.INVALIDATED: ("Credentials changed - reconnect", "orange"),
}


class SettingsPanel(ctk.CTkFrame):
    """
    Settings form.

    Attributes:
        app: The main App, providing ``context`` and the background workers.
    """

    def __init__(self, parent, app):
        super().__init__(parent)
        self.app = app
        self.logger = logging.getLogger(__name__)
        controller = app.context.controller

        self.grid_columnconfigure(1, weight=1)

        ctk.CTkLabel(self, text="Settings", font=("Roboto", 20, "bold")).grid(
            row=0, column=0, columnspan=2, pady=(10, 15))

        # Theme
        ctk.CTkLabel(self, text="Theme:").grid(row=1, column=0, sticky="e", padx=5, pady=5)
        self.theme_var = ctk.StringVar(value=controller.theme.current.value)
        ctk.CTkOptionMenu(self, values=[t.value for t in Theme], variable=self.theme_var,
                          command=self.on_theme_selected).grid(row=1, column=1, sticky="w", pady=5)

        # Credentials
        credential = controller.vault.get()
        self.email_var = ctk.StringVar(value=credential.email if credential else "")
        self.password_var = ctk.StringVar(value="")
        self.company_var = ctk.StringVar(value=credential.company_id if credential else "")

        ctk.CTkLabel(self, text="My Studio Email:").grid(row=2, column=0, sticky="e", padx=5, pady=5)
        ctk.CTkEntry(self, textvariable=self.email_var, width=320).grid(row=2, column=1, sticky="w", pady=5)

        ctk.CTkLabel(self, text="Password:").grid(row=3, column=0, sticky="e", padx=5, pady=5)
        ctk.CTkEntry(self, textvariable=self.password_var, show='*', width=320,
                     placeholder_text="unchanged" if credential else "").grid(row=3, column=1, sticky="w", pady=5)

        ctk.CTkLabel(self, text="Company ID:").grid(row=4, column=0, sticky="e", padx=5, pady=5)
        ctk.CTkEntry(self, textvariable=self.company_var, width=320).grid(row=4, column=1, sticky="w", pady=5)

        # Buttons
        btn_frame = ctk.CTkFrame(self, fg_color="transparent")
        btn_frame.grid(row=5, column=0, columnspan=2, pady=10)
        ctk.CTkButton(btn_frame, text="Save", command=self.save_credentials, width=110).pack(side="left", padx=6)
        ctk.CTkButton(btn_frame, text="Test Connection", command=self.test_connection, width=140).pack(side="left", padx=6)
        ctk.CTkButton(btn_frame, text="Reset All", command=self.reset_all, width=110).pack(side="left", padx=6)

        self.error_label = ctk.CTkLabel(self, text="", text_color="red")
        self.error_label.grid(row=6, column=0, columnspan=2, sticky="w", padx=12)

        self.status_label = ctk.CTkLabel(self, text="", text_color="gray")
        self.status_label.grid(row=7, column=0, columnspan=2, sticky="w", padx=12, pady=(0, 10))

        app.context.sessions.add_state_listener(
            lambda state: self.after(0, self.show_session_state, state))
        self.show_session_state(app.context.sessions.state)

    # ------------------------------------------------------------------------
    # ACTIONS
    # ------------------------------------------------------------------------

    def on_theme_selected(self, value: str):
        future = self.app.settings_worker.submit_replacing(
            "theme", self.app.context.controller.set_theme, value)
        future.add_done_callback(lambda f: self.after(0, self._settings_done, f))

    def save_credentials(self):
        controller = self.app.context.controller
        password = self.password_var.get()
        if not password:
            current = controller.vault.get()
            password = current.password if current else ""

        future = self.app.settings_worker.submit(
            controller.update_credentials, self.email_var.get(), password, self.company_var.get())
        self.password_var.set("")
        future.add_done_callback(lambda f: self.after(0, self._settings_done, f))

    def reset_all(self):
        future = self.app.settings_worker.submit(self.app.context.controller.reset_all)
        future.add_done_callback(lambda f: self.after(0, self._reset_done, f))

    def test_connection(self):
        self.status_label.configure(text="Testing My Studio connection...", text_color="gray")
        future = self.app.network_worker.submit(self.app.context.sessions.test_connection)
        future.add_done_callback(lambda f: self.after(0, self._connection_done, f))

    # ------------------------------------------------------------------------
    # COMPLETION (UI thread)
    # ------------------------------------------------------------------------

    def _settings_done(self, future: Future):
        if future.cancelled():
            return
        error = future.exception()
        if error is None:
            self.error_label.configure(text="")
        elif isinstance(error, ValidationError):
            self.error_label.configure(text=error.message)
        elif isinstance(error, PersistFailed):
            self.error_label.configure(text="Could not save settings. Please try again.")
        else:
            self.logger.error(f"Settings change failed: {type(error).__name__}: {error}")
            self.error_label.configure(text=str(error))
        self.theme_var.set(self.app.context.controller.theme.current.value)

    def _reset_done(self, future: Future):
        self._settings_done(future)
        if not future.cancelled() and future.exception() is None:
            self.email_var.set("")
            self.password_var.set("")
            self.company_var.set("")

    def _connection_done(self, future: Future):
        if future.cancelled():
            return
        error = future.exception()
        if error is None:
            self.status_label.configure(text="Connection OK", text_color="green")
        elif isinstance(error, AuthRejected):
            self.status_label.configure(text=f"Login rejected: {error}", text_color="red")
        elif isinstance(error, AuthUnreachable):
            self.status_label.configure(text="My Studio is unreachable", text_color="red")
        elif isinstance(error, YoukosoError):
            self.status_label.configure(text=f"Error: {error}", text_color="red")
        else:
            self.logger.error(f"Connection test failed unexpectedly: {type(error).__name__}: {error}")
            self.status_label.configure(text="Unexpected error, see log", text_color="red")

    def show_session_state(self, state: SessionState):
        text, color = STATUS_TEXT[state]
        self.status_label.configure(text=text, text_color=color)
