"""
Central configuration for the Pomodoro+ session core.
All values can be overridden via environment variables or a local config.json.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

_ROOT = Path(__file__).parent.parent
_CONFIG_FILE = _ROOT / "config.json"


@dataclass
class Config:
    # API
    api_host: str = "127.0.0.1"
    api_port: int = 8765

    # Timer driver
    tick_interval_ms: int = 1000             # external 1 Hz tick

    # Storage
    data_dir: Path = field(default_factory=lambda: _ROOT / "data")
    state_db: str = "pomoplus.db"

    # Sync queue
    sync_max_retries: int = 3

    # Logging
    log_level: str = "info"

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def state_db_path(self) -> Path:
        return self.data_dir / self.state_db

    @classmethod
    def load(cls) -> "Config":
        cfg = cls()
        if _CONFIG_FILE.exists():
            overrides = json.loads(_CONFIG_FILE.read_text())
            for k, v in overrides.items():
                if hasattr(cfg, k):
                    setattr(cfg, k, v)
        # environment variable overrides (PP_*)
        for k in cfg.__dataclass_fields__:  # type: ignore[attr-defined]
            env_key = f"PP_{k.upper()}"
            if env_key in os.environ:
                setattr(cfg, k, type(getattr(cfg, k))(os.environ[env_key]))
        cfg.data_dir = Path(cfg.data_dir)
        cfg.data_dir.mkdir(parents=True, exist_ok=True)
        return cfg


# Module-level singleton
config = Config.load()
