"""
Central configuration for the Adaptive Focus Engine.
All values can be overridden via environment variables or a local config.json.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

_ROOT = Path(__file__).parent.parent
_CONFIG_FILE = _ROOT / "config.json"


@dataclass
class Config:
    # API
    api_host: str = "127.0.0.1"
    api_port: int = 8766

    # Storage
    data_dir: Path = field(default_factory=lambda: _ROOT / "data")
    storage_name: str = "contextual_bandit_model"

    # Policy
    exploration_rate: float = 0.1            # epsilon for the exploration draw
    cold_start_bias: bool = True             # explore an unpulled baseline arm first
    dynamic_arm_promotion_threshold: int = 2 # custom-duration reports before promotion

    # Arms (minutes)
    include_short_sessions: bool = False
    focus_arms: List[int] = field(default_factory=lambda: [15, 20, 25, 30, 45, 60])
    break_arms: List[int] = field(default_factory=lambda: [5, 10, 15, 20])
    short_focus_arms: List[int] = field(default_factory=lambda: [5, 10, 15, 20, 25])
    short_break_arms: List[int] = field(default_factory=lambda: [2, 3, 5, 10])

    # Baseline used by the API when the caller does not send one
    default_focus_minutes: int = 25
    default_break_minutes: int = 5

    log_level: str = "INFO"

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)

    @property
    def model_path(self) -> Path:
        return self.data_dir / f"{self.storage_name}.json"

    def default_arms(self, family: str) -> List[int]:
        """Fixed candidate durations for a decision family ("focus" or "break")."""
        if family == "break":
            return list(self.short_break_arms if self.include_short_sessions else self.break_arms)
        return list(self.short_focus_arms if self.include_short_sessions else self.focus_arms)

    @classmethod
    def load(cls) -> "Config":
        cfg = cls()
        if _CONFIG_FILE.exists():
            overrides = json.loads(_CONFIG_FILE.read_text())
            for k, v in overrides.items():
                if hasattr(cfg, k):
                    setattr(cfg, k, v)
        # environment variable overrides (FOCUS_*)
        for k in cfg.__dataclass_fields__:  # type: ignore[attr-defined]
            env_key = f"FOCUS_{k.upper()}"
            if env_key in os.environ:
                setattr(cfg, k, _coerce(getattr(cfg, k), os.environ[env_key]))
        cfg.data_dir = Path(cfg.data_dir)
        return cfg


def _coerce(current, raw: str):
    if isinstance(current, bool):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(current, list):
        return [int(part) for part in raw.split(",") if part.strip()]
    return type(current)(raw)


# Module-level singleton
config = Config.load()
