"""Tests for the session ID and user settings."""

import pytest

from common.constants import AUTO_DELETE_KEY, SECURITY_SETTINGS_KEY, SESSION_KEY
from lifecycle.session import SessionManager
from lifecycle.settings import SecuritySettings, UserSettings


def test_session_id_created_once(storage):
    session = SessionManager(storage)

    first = session.get_user_session_id()

    assert storage.get_item(SESSION_KEY) == first
    assert SessionManager(storage).get_user_session_id() == first


def test_auto_delete_defaults_to_five_minutes(storage):
    assert UserSettings(storage).get_auto_delete_minutes() == 5


def test_set_auto_delete_minutes(storage):
    settings = UserSettings(storage)

    settings.set_auto_delete_minutes(15)

    assert settings.get_auto_delete_minutes() == 15


@pytest.mark.parametrize("minutes", [0, 61, -1])
def test_set_auto_delete_minutes_out_of_range(storage, minutes):
    with pytest.raises(ValueError):
        UserSettings(storage).set_auto_delete_minutes(minutes)


@pytest.mark.parametrize("raw", ["abc", "0", "90"])
def test_invalid_stored_auto_delete_falls_back(storage, raw):
    storage.set_item(AUTO_DELETE_KEY, raw)
    assert UserSettings(storage).get_auto_delete_minutes() == 5


def test_security_settings_default_off(storage):
    assert UserSettings(storage).get_security_settings() == SecuritySettings(encryption_enabled=False)


def test_update_security_settings(storage):
    settings = UserSettings(storage)

    settings.update_security_settings(encryption_enabled=True)

    assert settings.get_security_settings().encryption_enabled is True
    assert storage.get_item(SECURITY_SETTINGS_KEY) == '{"encryptionEnabled": true}'


def test_unreadable_security_settings_ignored(storage):
    storage.set_item(SECURITY_SETTINGS_KEY, "[1, 2")
    assert UserSettings(storage).get_security_settings().encryption_enabled is False
