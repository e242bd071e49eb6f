"""Tests for config module."""

import dataclasses

import pytest

from filewatch.config import WatchOptions


class TestWatchOptions:
    """Tests for WatchOptions class."""

    def test_default_values(self):
        options = WatchOptions()
        assert options.debounce_ms == 10
        assert options.persistent is True
        assert options.interval_ms == 1000
        assert options.force_polling is False
        assert options.fallback is True

    def test_custom_values(self):
        options = WatchOptions(
            debounce_ms=50,
            persistent=False,
            interval_ms=250,
            force_polling=True,
            fallback=False,
        )
        assert options.debounce_ms == 50
        assert options.persistent is False
        assert options.interval_ms == 250
        assert options.force_polling is True
        assert options.fallback is False

    def test_seconds_helpers(self):
        options = WatchOptions(debounce_ms=20, interval_ms=1500)
        assert options.debounce_seconds == pytest.approx(0.02)
        assert options.interval_seconds == pytest.approx(1.5)

    def test_is_immutable(self):
        options = WatchOptions()
        with pytest.raises(dataclasses.FrozenInstanceError):
            options.interval_ms = 5

    def test_rejects_negative_debounce(self):
        with pytest.raises(ValueError):
            WatchOptions(debounce_ms=-1)

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            WatchOptions(interval_ms=0)


class TestFromDict:
    """Tests for building options from a mapping."""

    def test_empty(self):
        assert WatchOptions.from_dict(None) == WatchOptions()
        assert WatchOptions.from_dict({}) == WatchOptions()

    def test_short_names(self):
        options = WatchOptions.from_dict({
            "debounce": 30,
            "persistent": False,
            "interval": 200,
            "forcePolling": True,
            "fallback": False,
        })
        assert options == WatchOptions(
            debounce_ms=30,
            persistent=False,
            interval_ms=200,
            force_polling=True,
            fallback=False,
        )

    def test_field_names(self):
        options = WatchOptions.from_dict({"interval_ms": 300, "force_polling": True})
        assert options.interval_ms == 300
        assert options.force_polling is True

    def test_unset_values_take_defaults(self):
        options = WatchOptions.from_dict({"debounce": None, "interval": 0, "unknown": 1})
        assert options == WatchOptions()

    def test_zero_debounce_is_kept(self):
        assert WatchOptions.from_dict({"debounce": 0}).debounce_ms == 0


class TestFromEnv:
    """Tests for building options from environment variables."""

    def test_empty_environment(self):
        assert WatchOptions.from_env({}) == WatchOptions()

    def test_reads_all_variables(self):
        env = {
            "FILEWATCH_DEBOUNCE_MS": "25",
            "FILEWATCH_PERSISTENT": "no",
            "FILEWATCH_INTERVAL_MS": "400",
            "FILEWATCH_FORCE_POLLING": "true",
            "FILEWATCH_FALLBACK": "0",
        }
        options = WatchOptions.from_env(env)
        assert options == WatchOptions(
            debounce_ms=25,
            persistent=False,
            interval_ms=400,
            force_polling=True,
            fallback=False,
        )

    def test_blank_values_ignored(self):
        assert WatchOptions.from_env({"FILEWATCH_INTERVAL_MS": "  "}) == WatchOptions()

    def test_invalid_boolean(self):
        with pytest.raises(ValueError):
            WatchOptions.from_env({"FILEWATCH_FALLBACK": "maybe"})

    def test_uses_os_environ(self, monkeypatch):
        monkeypatch.setenv("FILEWATCH_INTERVAL_MS", "750")
        assert WatchOptions.from_env().interval_ms == 750
