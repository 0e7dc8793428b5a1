from __future__ import annotations
from dataclasses import dataclass, fields, asdict
from typing import Any, Dict, Iterable
import os, json

import yaml

ENV_PREFIX = "SPACECOMMAND__"

def _deep_merge(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(a)
    for k, v in (b or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out

def _load_one(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        text = f.read()
    if path.endswith(".json"):
        d = json.loads(text)
    else:
        # YAML is a superset of JSON, so extensionless files parse either way
        d = yaml.safe_load(text)
    if d is None:
        return {}
    if not isinstance(d, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(d).__name__}")
    return d

def load_configs(paths: Iterable[str] | None) -> Dict[str, Any]:
    cfg: Dict[str, Any] = {}
    for p in (paths or []):
        cfg = _deep_merge(cfg, _load_one(p))
    return cfg

def env_overrides(prefix: str = ENV_PREFIX) -> Dict[str, Any]:
    # Nested via double underscores: SPACECOMMAND__COMBAT__ROUND_CAP=12
    out: Dict[str, Any] = {}
    for k, v in os.environ.items():
        if not k.startswith(prefix):
            continue
        parts = k[len(prefix):].split("__")
        cur = out
        for i, part in enumerate(parts):
            key = part.lower()
            if i == len(parts) - 1:
                cur[key] = _coerce(v)
            else:
                cur = cur.setdefault(key, {})
    return out

def _coerce(s: str) -> Any:
    t = s.strip().lower()
    if t in ("true", "false"):
        return t == "true"
    try:
        if "." in t:
            return float(t)
        return int(t)
    except ValueError:
        return s

def apply_cli_overrides(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    return _deep_merge(base, overrides or {})


@dataclass(frozen=True)
class EngineSettings:
    """Tunable constants of the combat engine.

    Only the relative ordering of effective power matters for outcomes, so
    ``normalization`` is a scaling convenience.  The loss clamp and round cap
    are balance knobs checked by the statistical tests.
    """

    round_cap: int = 10
    variance_min: float = 0.8
    variance_max: float = 1.2
    min_loss_fraction: float = 0.05
    max_loss_fraction: float = 0.5
    winner_loss_ratio: float = 0.25
    bombard_multiplier: float = 2.0
    experience_rate: float = 0.002
    morale_rate: float = 0.01
    morale_baseline: int = 100
    normalization: float = 1000.0
    experience_per_round: int = 1
    experience_health_divisor: int = 100
    morale_win: int = 10
    morale_loss: int = -15
    morale_retreat: int = -5
    morale_hold: int = 5
    morale_cap: int = 150
    supplies_per_round: int = 1
    out_of_supply_penalty: float = 0.75
    # Share of starting hull at or below which a side withdraws; 0 disables.
    retreat_threshold: float = 0.0

    def __post_init__(self) -> None:
        if self.round_cap < 1:
            raise ValueError("round_cap must be at least 1")
        if not 0 < self.variance_min <= self.variance_max:
            raise ValueError("variance bounds must satisfy 0 < variance_min <= variance_max")
        if not 0 <= self.min_loss_fraction <= self.max_loss_fraction <= 1:
            raise ValueError("loss fractions must satisfy 0 <= min <= max <= 1")
        if self.normalization <= 0:
            raise ValueError("normalization must be positive")
        if self.experience_health_divisor <= 0:
            raise ValueError("experience_health_divisor must be positive")
        if not 0 <= self.retreat_threshold < 1:
            raise ValueError("retreat_threshold must satisfy 0 <= retreat_threshold < 1")

    @classmethod
    def from_config(cls, cfg: Dict[str, Any] | None) -> "EngineSettings":
        """Build settings from the ``combat`` section of a merged config."""
        section = (cfg or {}).get("combat", {}) or {}
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in section.items():
            key = str(key).replace("-", "_")
            if key not in known:
                continue
            default = getattr(cls, key)
            kwargs[key] = type(default)(value)
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


DEFAULT_SETTINGS = EngineSettings()


def resolve_settings(paths: Iterable[str] | None = None,
                     overrides: Dict[str, Any] | None = None,
                     prefix: str = ENV_PREFIX) -> EngineSettings:
    """Layer config files, then environment, then explicit overrides."""
    cfg = load_configs(paths)
    cfg = apply_cli_overrides(cfg, env_overrides(prefix))
    cfg = apply_cli_overrides(cfg, overrides or {})
    return EngineSettings.from_config(cfg)

__all__ = [
    "DEFAULT_SETTINGS",
    "ENV_PREFIX",
    "EngineSettings",
    "load_configs",
    "env_overrides",
    "apply_cli_overrides",
    "resolve_settings",
    "_deep_merge",
]
