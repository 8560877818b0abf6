"""Tests for PersistedPreferences."""

from sos_guardian.config import ONBOARDING_KEY, USERNAME_KEY, SHAKE_ENABLED_KEY
from sos_guardian.database import database
from sos_guardian.utils.preferences import PersistedPreferences


class TestPersistedPreferences:

    def test_get_returns_default_for_missing_key(self, preferences):
        assert preferences.get("missing") is None
        assert preferences.get("missing", 42) == 42

    def test_read_your_write(self, preferences):
        preferences.set(USERNAME_KEY, "Thandi")
        assert preferences.get(USERNAME_KEY) == "Thandi"
        preferences.set(USERNAME_KEY, "Thandi M")
        assert preferences.get(USERNAME_KEY) == "Thandi M"

    def test_values_survive_new_instance(self, preferences):
        preferences.set(ONBOARDING_KEY, True)
        preferences.set("nested", {"a": [1, 2]})

        reloaded = PersistedPreferences(database.SessionLocal)

        assert reloaded.get(ONBOARDING_KEY) is True
        assert reloaded.get("nested") == {"a": [1, 2]}

    def test_keys_are_independent(self, preferences):
        preferences.set(USERNAME_KEY, "Sam")
        preferences.set(SHAKE_ENABLED_KEY, False)
        assert preferences.get(USERNAME_KEY) == "Sam"
        assert preferences.get(ONBOARDING_KEY, False) is False

    def test_snapshot_defaults(self, preferences):
        snapshot = preferences.snapshot()
        assert snapshot.onboarding_complete is False
        assert snapshot.user_name == ""
        assert snapshot.shake_enabled is True

    def test_snapshot_reflects_values(self, preferences):
        preferences.set(ONBOARDING_KEY, True)
        preferences.set(USERNAME_KEY, "Sam")
        preferences.set(SHAKE_ENABLED_KEY, False)
        assert preferences.snapshot().model_dump() == {
            "onboarding_complete": True,
            "user_name": "Sam",
            "shake_enabled": False,
        }
