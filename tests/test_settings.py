"""
Tests for the settings dataclasses (pomoplus/settings.py) and the Config loader.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

import pomoplus.config as config_mod
from pomoplus.config import Config
from pomoplus.settings import (
    SCHEDULER_DEFAULTS,
    TIMER_DEFAULTS,
    SchedulerSettings,
    TimerSettings,
    apply_patch,
    from_dict,
)


# ── Settings dataclasses ─────────────────────────────────────────────────────

class TestDefaults:
    def test_timer_defaults(self):
        assert TIMER_DEFAULTS["pomodoro_duration"] == 25
        assert TIMER_DEFAULTS["short_break_duration"] == 5
        assert TIMER_DEFAULTS["long_break_duration"] == 15
        assert TIMER_DEFAULTS["long_break_interval"] == 4

    def test_scheduler_defaults(self):
        assert SCHEDULER_DEFAULTS == {
            "enabled": True,
            "auto_start_next_task": True,
            "auto_start_break": False,
            "break_before_next_task": True,
            "priority_based": True,
            "energy_based": True,
            "max_consecutive_pomodoros": 4,
        }


class TestApplyPatch:
    def test_unknown_keys_ignored(self):
        s = apply_patch(TimerSettings(), {"pomodoro_duration": 30, "nonsense": 1})
        assert s.pomodoro_duration == 30
        assert not hasattr(s, "nonsense")

    def test_values_coerced_to_default_type(self):
        s = apply_patch(TimerSettings(), {"pomodoro_duration": "45", "sound_enabled": "false"})
        assert s.pomodoro_duration == 45
        assert s.sound_enabled is False

    def test_none_values_skipped(self):
        s = apply_patch(SchedulerSettings(), {"enabled": None})
        assert s.enabled is True

    def test_from_dict_falls_back_to_defaults(self):
        assert from_dict(TimerSettings, None) == TimerSettings()
        assert from_dict(SchedulerSettings, {"energy_based": 0}).energy_based is False


# ── Config ───────────────────────────────────────────────────────────────────

@pytest.fixture()
def config_file(tmp_path: Path, monkeypatch):
    fake = tmp_path / "config.json"
    monkeypatch.setattr(config_mod, "_CONFIG_FILE", fake)
    return fake


class TestConfig:
    def test_defaults(self, config_file, tmp_path, monkeypatch):
        monkeypatch.setenv("PP_DATA_DIR", str(tmp_path / "data"))
        cfg = Config.load()
        assert cfg.api_port == 8765
        assert cfg.tick_interval_ms == 1000
        assert cfg.sync_max_retries == 3
        assert cfg.state_db_path == tmp_path / "data" / "pomoplus.db"

    def test_json_file_overrides(self, config_file, tmp_path, monkeypatch):
        monkeypatch.setenv("PP_DATA_DIR", str(tmp_path))
        config_file.write_text(json.dumps({"api_port": 9000, "unknown": True}))
        cfg = Config.load()
        assert cfg.api_port == 9000
        assert not hasattr(cfg, "unknown")

    def test_env_overrides_are_typed(self, config_file, tmp_path, monkeypatch):
        monkeypatch.setenv("PP_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("PP_TICK_INTERVAL_MS", "0")
        monkeypatch.setenv("PP_LOG_LEVEL", "debug")
        cfg = Config.load()
        assert cfg.tick_interval_ms == 0
        assert cfg.log_level == "debug"
