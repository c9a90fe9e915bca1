"""
Simulation configuration for Nationsim.

Every probability the tick loop rolls against lives here so a world can be
built with forced branches (tests, scripted scenarios) without touching the
engine.
"""
from __future__ import annotations
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

ENV_PREFIX = "NATIONSIM_"


def get_default_save_dir() -> Path:
    if env_path := os.environ.get(f"{ENV_PREFIX}SAVE_DIR"):
        return Path(env_path)
    return Path(__file__).resolve().parent.parent / "saves"


@dataclass
class SimConfig:
    # ── Calendar & map ──
    start_year: int = 2023
    map_width: int = 2000
    map_height: int = 1500
    grid_size: int = 10
    notification_limit: int = 20

    # ── Pairwise interaction step ──
    war_declaration_chance: float = 0.1
    trade_proposal_chance: float = 0.2
    alliance_proposal_chance: float = 0.1
    hostile_threshold: float = -50
    friendly_threshold: float = 50
    relation_drift: int = 5

    # ── Active wars ──
    battle_chance: float = 0.3
    commitment_min: float = 0.3
    commitment_max: float = 0.7
    surrender_chance: float = 0.2
    power_ratio_for_surrender: float = 2.0
    long_war_battles: int = 10
    negotiated_peace_chance: float = 0.1
    forced_peace_chance: float = 0.5

    # ── Nation self-update ──
    coup_chance: float = 0.1

    # ── Disasters ──
    severe_disaster_chance: float = 0.3
    secondary_disaster_chance: float = 0.3

    # ── Persistence ──
    save_dir: str = ""

    def __post_init__(self):
        if not self.save_dir:
            self.save_dir = str(get_default_save_dir())
        self.validate()

    def validate(self):
        """Raise ValueError if any setting is out of range."""
        for name in ("map_width", "map_height", "grid_size", "notification_limit"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1")
        for f in fields(self):
            if f.name.endswith("_chance") and not 0 <= getattr(self, f.name) <= 1:
                raise ValueError(f"{f.name} must be between 0 and 1")
        if not 0 <= self.commitment_min <= self.commitment_max <= 1:
            raise ValueError("commitment bounds must satisfy 0 <= min <= max <= 1")
        if self.relation_drift < 0:
            raise ValueError("relation_drift must not be negative")

    @property
    def grid_cols(self) -> int:
        return -(-self.map_width // self.grid_size)

    @property
    def grid_rows(self) -> int:
        return -(-self.map_height // self.grid_size)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SimConfig:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_env(cls) -> SimConfig:
        """Build a config from ``NATIONSIM_*`` environment variables."""
        overrides: dict[str, Any] = {}
        for f in fields(cls):
            raw = os.environ.get(f"{ENV_PREFIX}{f.name.upper()}")
            if raw is None:
                continue
            default = getattr(cls, f.name, None)
            if isinstance(default, bool):
                overrides[f.name] = raw.lower() in ("1", "true", "yes")
            elif isinstance(default, int):
                overrides[f.name] = int(raw)
            elif isinstance(default, float):
                overrides[f.name] = float(raw)
            else:
                overrides[f.name] = raw
        return cls(**overrides)

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}
