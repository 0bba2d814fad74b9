"""Tests for the sleep window policy."""

from datetime import datetime, timezone

import pytest
from tick_pet.sleep import SleepWindowPolicy, in_window, parse_hhmm
from tick_pet.types import SleepConfig, SleepWindowLockedError


def at(hour: int, minute: int = 0) -> float:
    return datetime(2024, 3, 5, hour, minute, tzinfo=timezone.utc).timestamp() * 1000


def auto_policy() -> SleepWindowPolicy:
    return SleepWindowPolicy(SleepConfig(), tz=timezone.utc)


class TestParse:
    def test_parse_hhmm(self):
        assert parse_hhmm("00:00") == 0
        assert parse_hhmm("08:30") == 510
        assert parse_hhmm("23:59") == 1439

    @pytest.mark.parametrize("text", ["", "8", "24:00", "12:60", "ab:cd", "1:2:3"])
    def test_parse_rejects_malformed(self, text):
        with pytest.raises(ValueError):
            parse_hhmm(text)

    def test_in_window_wraps_midnight(self):
        assert in_window(23 * 60, 22 * 60, 8 * 60) is True
        assert in_window(3 * 60, 22 * 60, 8 * 60) is True
        assert in_window(12 * 60, 22 * 60, 8 * 60) is False

    def test_in_window_same_day(self):
        assert in_window(14 * 60, 13 * 60, 15 * 60) is True
        assert in_window(15 * 60, 13 * 60, 15 * 60) is False

    def test_empty_window_never_matches(self):
        assert not any(in_window(m, 600, 600) for m in range(0, 1440, 15))


class TestAutoMode:
    def test_night_hours_asleep(self):
        policy = auto_policy()
        assert policy.is_asleep(at(23, 0)) is True
        assert policy.is_asleep(at(3, 0)) is True

    def test_noon_awake(self):
        assert auto_policy().is_asleep(at(12, 0)) is False

    def test_boundaries(self):
        policy = auto_policy()
        assert policy.is_asleep(at(21, 59)) is False
        assert policy.is_asleep(at(22, 0)) is True
        assert policy.is_asleep(at(8, 29)) is True
        assert policy.is_asleep(at(8, 30)) is False


class TestCustomMode:
    def test_wrapping_custom_window(self):
        policy = auto_policy()
        policy.configure("23:30", "06:00")
        assert policy.is_asleep(at(0, 15)) is True
        assert policy.is_asleep(at(12, 0)) is False
        assert policy.is_asleep(at(23, 0)) is False

    def test_same_day_custom_window(self):
        policy = auto_policy()
        policy.configure("13:00", "15:00")
        assert policy.is_asleep(at(14, 0)) is True
        assert policy.is_asleep(at(3, 0)) is False

    def test_configure_locks_by_default(self):
        policy = auto_policy()
        policy.configure("23:30", "06:00")
        assert policy.locked
        with pytest.raises(SleepWindowLockedError):
            policy.configure("01:00", "02:00")
        with pytest.raises(SleepWindowLockedError):
            policy.use_auto()

    def test_unlocked_configure_can_be_changed(self):
        policy = auto_policy()
        policy.configure("13:00", "15:00", lock=False)
        policy.configure("01:00", "02:00", lock=False)
        assert policy.is_asleep(at(1, 30)) is True
        policy.use_auto()
        assert policy.is_asleep(at(23, 0)) is True

    def test_invalid_configure_leaves_policy_unchanged(self):
        policy = auto_policy()
        with pytest.raises(ValueError):
            policy.configure("25:00", "06:00")
        assert policy.config.mode == "auto"
        assert not policy.locked

    def test_configure_updates_shared_config(self):
        config = SleepConfig()
        policy = SleepWindowPolicy(config, tz=timezone.utc)
        policy.configure("23:30", "06:00")
        assert config.mode == "custom"
        assert (config.start, config.end, config.locked) == ("23:30", "06:00", True)

    def test_corrupt_custom_config_falls_back_to_auto(self):
        config = SleepConfig(mode="custom", start="bogus", end="06:00", locked=True)
        policy = SleepWindowPolicy(config, tz=timezone.utc)
        assert policy.is_asleep(at(23, 0)) is True
        assert policy.is_asleep(at(12, 0)) is False
