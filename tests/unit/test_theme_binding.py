"""
Unit tests for applying the theme preference to customtkinter.
"""

import threading
import unittest
from unittest.mock import MagicMock, patch

import pytest

pytest.importorskip("customtkinter")

from youkoso.core.settings_controller import SettingsController
from youkoso.core.theme import Theme, ThemePreference
from youkoso.ui.theme_binding import apply_theme, bind_theme
from youkoso.utils.background_worker import BackgroundWorker


class TestThemeBinding(unittest.TestCase):

    @patch('youkoso.ui.theme_binding.ctk.set_appearance_mode')
    def test_applies_current_and_follows_changes(self, mock_mode):
        preference = ThemePreference(Theme.DARK)
        unbind = bind_theme(preference)
        mock_mode.assert_called_once_with("Dark")

        preference.set(Theme.SYSTEM)
        mock_mode.assert_called_with("System")

        unbind()
        preference.set(Theme.LIGHT)
        self.assertEqual(mock_mode.call_count, 2)

    @patch('youkoso.ui.theme_binding.ctk.set_appearance_mode')
    def test_changes_are_scheduled_not_applied_inline(self, mock_mode):
        preference = ThemePreference()
        schedule = MagicMock()
        bind_theme(preference, schedule=schedule)
        mock_mode.assert_called_once_with("System")

        preference.set(Theme.DARK)

        schedule.assert_called_once_with(apply_theme, Theme.DARK)
        self.assertEqual(mock_mode.call_count, 1)

    @patch('youkoso.ui.theme_binding.ctk.set_appearance_mode')
    def test_worker_commits_apply_on_ui_thread(self, mock_mode):
        applied_on = []
        mock_mode.side_effect = lambda mode: applied_on.append(threading.current_thread().name)
        pending = []

        store = MagicMock()
        store.path.exists.return_value = True
        store.last_error = None
        controller = SettingsController(store)
        store.load.return_value = controller.document
        controller.load()

        bind_theme(controller.theme, schedule=lambda func, *args: pending.append((func, args)))
        applied_on.clear()

        worker = BackgroundWorker(name="Settings")
        try:
            worker.submit(controller.set_theme, "Dark").result(timeout=5)
        finally:
            worker.shutdown()

        self.assertEqual(applied_on, [])
        for func, args in pending:
            func(*args)
        self.assertEqual(applied_on, [threading.current_thread().name])
        mock_mode.assert_called_with("Dark")


if __name__ == '__main__':
    unittest.main()
