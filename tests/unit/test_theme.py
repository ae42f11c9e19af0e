"""
Unit tests for theme parsing and change notification.
"""

import pytest

from youkoso.core.theme import DEFAULT_THEME, Theme, ThemePreference


@pytest.mark.parametrize("value, expected", [
    ("System", Theme.SYSTEM),
    ("light", Theme.LIGHT),
    (" DARK ", Theme.DARK),
    (Theme.LIGHT, Theme.LIGHT),
])
def test_parse_accepts_names(value, expected):
    assert Theme.parse(value) == expected


@pytest.mark.parametrize("value", ["Purple", "", None, 3])
def test_parse_rejects_unknown(value):
    with pytest.raises(ValueError):
        Theme.parse(value)


def test_default_is_system():
    assert DEFAULT_THEME == Theme.SYSTEM
    assert ThemePreference().current == Theme.SYSTEM


def test_observers_notified_only_on_change():
    preference = ThemePreference()
    seen = []
    preference.subscribe(seen.append)

    assert preference.set(Theme.DARK) is True
    assert preference.set(Theme.DARK) is False
    assert preference.set(Theme.LIGHT) is True
    assert seen == [Theme.DARK, Theme.LIGHT]


def test_unsubscribe_stops_notifications():
    preference = ThemePreference()
    seen = []
    unsubscribe = preference.subscribe(seen.append)
    unsubscribe()
    preference.set(Theme.DARK)
    assert seen == []


def test_failing_observer_does_not_block_others():
    preference = ThemePreference()
    seen = []

    def broken(theme):
        raise RuntimeError("boom")

    preference.subscribe(broken)
    preference.subscribe(seen.append)
    preference.set(Theme.LIGHT)
    assert seen == [Theme.LIGHT]
    assert preference.current == Theme.LIGHT
