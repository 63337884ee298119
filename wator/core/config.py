"""
Configuration system for the Wa-Tor Simulator.

Provides a hierarchical dataclass-based config with JSON serialization,
validation, and sensible defaults for all simulation parameters.
"""

from __future__ import annotations

import json
import math
import warnings
from copy import deepcopy
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import Any


TARGET_SELECTION_MODES = ("random", "first")


# ---------------------------------------------------------------------------
# Sub-config dataclasses (grouped by domain)
# ---------------------------------------------------------------------------

@dataclass
class WorldConfig:
    """Grid dimensions and random seed."""
    width: int = 50
    height: int = 50
    seed: int = 42

    def validate(self) -> list[str]:
        errors = []
        if self.width < 1:
            errors.append(f"world.width must be >= 1, got {self.width}")
        if self.height < 1:
            errors.append(f"world.height must be >= 1, got {self.height}")
        if self.width > 10_000:
            errors.append(f"world.width must be <= 10000, got {self.width}")
        if self.height > 10_000:
            errors.append(f"world.height must be <= 10000, got {self.height}")
        return errors

    @property
    def capacity(self) -> int:
        """Total number of cells."""
        return self.width * self.height


@dataclass
class PreyConfig:
    """Prey species constants."""
    initial_count: int = 30
    reproduction_time: int = 5

    def validate(self) -> list[str]:
        errors = []
        if self.initial_count < 0:
            errors.append(f"prey.initial_count must be >= 0, got {self.initial_count}")
        if self.reproduction_time < 1:
            errors.append(f"prey.reproduction_time must be >= 1, got {self.reproduction_time}")
        return errors


@dataclass
class PredatorConfig:
    """Predator species constants."""
    initial_count: int = 50
    reproduction_time: int = 20
    initial_energy: int = 15
    food_value: int = 5
    target_selection: str = "random"  # "random" or "first" (N, S, W, E order)

    def validate(self) -> list[str]:
        errors = []
        if self.initial_count < 0:
            errors.append(f"predator.initial_count must be >= 0, got {self.initial_count}")
        if self.reproduction_time < 1:
            errors.append(f"predator.reproduction_time must be >= 1, got {self.reproduction_time}")
        if self.initial_energy < 1:
            errors.append(f"predator.initial_energy must be >= 1, got {self.initial_energy}")
        if self.food_value < 0:
            errors.append(f"predator.food_value must be >= 0, got {self.food_value}")
        if self.target_selection not in TARGET_SELECTION_MODES:
            errors.append(
                f"predator.target_selection must be one of {TARGET_SELECTION_MODES}, "
                f"got '{self.target_selection}'"
            )
        return errors


@dataclass
class PopulationConfig:
    """Population cap and balancing parameters."""
    max_entities: int = 500
    delete_unbalanced_entities: int = 50
    high_water_pct: float = 0.90          # balancing triggers at this fraction of max_entities
    placement_max_attempts: int = 10_000  # random placement retry budget

    def validate(self) -> list[str]:
        errors = []
        if self.max_entities < 1:
            errors.append(f"population.max_entities must be >= 1, got {self.max_entities}")
        if self.delete_unbalanced_entities < 0:
            errors.append(
                f"population.delete_unbalanced_entities must be >= 0, "
                f"got {self.delete_unbalanced_entities}"
            )
        if not (0.0 < self.high_water_pct <= 1.0):
            errors.append(f"population.high_water_pct must be in (0, 1], got {self.high_water_pct}")
        if self.placement_max_attempts < 1:
            errors.append(
                f"population.placement_max_attempts must be >= 1, got {self.placement_max_attempts}"
            )
        return errors

    @property
    def high_water_mark(self) -> int:
        """Live population at which balancing kicks in."""
        # Rounded first so 0.9 * 500 does not ceil to 451
        return math.ceil(round(self.high_water_pct * self.max_entities, 9))


@dataclass
class RunConfig:
    """Run length."""
    chronons: int = 100_000

    def validate(self) -> list[str]:
        errors = []
        if self.chronons < 0:
            errors.append(f"run.chronons must be >= 0, got {self.chronons}")
        return errors


@dataclass
class OutputConfig:
    """Run output settings."""
    output_dir: str = "runs"
    log_every_n_chronons: int = 1
    snapshot_every_n_chronons: int = 1000  # 0 = no snapshots

    def validate(self) -> list[str]:
        errors = []
        if self.log_every_n_chronons < 1:
            errors.append(f"output.log_every_n_chronons must be >= 1, got {self.log_every_n_chronons}")
        if self.snapshot_every_n_chronons < 0:
            errors.append(
                f"output.snapshot_every_n_chronons must be >= 0, got {self.snapshot_every_n_chronons}"
            )
        return errors


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------

@dataclass
class SimConfig:
    """
    Top-level simulation configuration.

    All parameters are adjustable. Nested dataclasses group related settings.
    Load from JSON with `load_config()`, validate with `validate()`.
    """
    world: WorldConfig = field(default_factory=WorldConfig)
    prey: PreyConfig = field(default_factory=PreyConfig)
    predator: PredatorConfig = field(default_factory=PredatorConfig)
    population: PopulationConfig = field(default_factory=PopulationConfig)
    run: RunConfig = field(default_factory=RunConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def validate(self) -> list[str]:
        """Validate all config sections. Returns list of error messages (empty = valid)."""
        errors = []
        for f in fields(self):
            sub = getattr(self, f.name)
            if hasattr(sub, "validate"):
                errors.extend(sub.validate())

        # Cross-section checks
        initial = self.prey.initial_count + self.predator.initial_count
        if initial > self.world.capacity:
            errors.append(
                f"initial population {initial} exceeds grid capacity {self.world.capacity}"
            )
        if initial > self.population.max_entities:
            errors.append(
                f"initial population {initial} exceeds population.max_entities "
                f"{self.population.max_entities}"
            )
        return errors

    def to_dict(self) -> dict[str, Any]:
        """Convert to nested dict for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SimConfig:
        """Create SimConfig from nested dict, merging with defaults."""
        config = cls()
        _merge_into_dataclass(config, data)
        return config

    def copy(self) -> SimConfig:
        """Deep copy of this config."""
        return deepcopy(self)


# ---------------------------------------------------------------------------
# JSON I/O helpers
# ---------------------------------------------------------------------------

def _merge_into_dataclass(target: Any, source: dict[str, Any], prefix: str = "") -> None:
    """
    Recursively merge a dict into a dataclass instance.
    Unknown keys emit a warning but don't raise.

    Raises:
        ValueError: If a value's type doesn't match the field's default.
    """
    if not isinstance(source, dict):
        return

    known_fields = {f.name for f in fields(target)}
    for key, value in source.items():
        if key not in known_fields:
            warnings.warn(
                f"Unknown config key '{key}' in section {type(target).__name__} - ignored.",
                UserWarning,
                stacklevel=3,
            )
            continue

        current = getattr(target, key)
        dotted_key = f"{prefix}{key}"

        if hasattr(current, "__dataclass_fields__"):
            if not isinstance(value, dict):
                raise ValueError(
                    f"Config section '{dotted_key}' must be an object, got {type(value).__name__}"
                )
            _merge_into_dataclass(current, value, prefix=f"{dotted_key}.")
        else:
            setattr(target, key, _checked_value(dotted_key, current, value))


def _checked_value(dotted_key: str, current: Any, value: Any) -> Any:
    """
    Check a JSON value against the type of the field's current value.

    Ints are accepted for float fields. Bools are never accepted as numbers.
    """
    expected = type(current)
    if expected is float and isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, bool) != (expected is bool) or not isinstance(value, expected):
        raise ValueError(
            f"Config key '{dotted_key}' must be {expected.__name__}, "
            f"got {type(value).__name__} ({value!r})"
        )
    return value


def load_config(path: str | Path) -> SimConfig:
    """
    Load config from a JSON file. Missing fields use defaults.

    Args:
        path: Path to JSON config file.

    Returns:
        Validated SimConfig instance.

    Raises:
        FileNotFoundError: If path doesn't exist.
        json.JSONDecodeError: If JSON is malformed.
        ValueError: If config values are invalid.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    config = SimConfig.from_dict(data)
    check_config(config)
    return config


def check_config(config: SimConfig) -> None:
    """
    Raise ValueError listing every validation problem, if any.
    """
    errors = config.validate()
    if errors:
        msg = "Invalid configuration:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ValueError(msg)


def save_config(config: SimConfig, path: str | Path) -> None:
    """Save config to JSON file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2, ensure_ascii=False)


def get_default_config() -> SimConfig:
    """Return a fresh default config (all defaults, validated)."""
    config = SimConfig()
    errors = config.validate()
    assert not errors, f"Default config is invalid: {errors}"
    return config


def apply_param_override(config: SimConfig, dotted_key: str, value: Any) -> None:
    """
    Apply a single parameter override using dot notation.

    Example:
        apply_param_override(config, "prey.initial_count", 100)
        apply_param_override(config, "population.max_entities", 1000)

    Args:
        config: SimConfig to modify in-place.
        dotted_key: Dot-separated path like "world.width".
        value: New value to set.

    Raises:
        KeyError: If the path doesn't exist.
    """
    parts = dotted_key.split(".")
    obj = config
    for part in parts[:-1]:
        if not hasattr(obj, part):
            raise KeyError(f"Config path '{dotted_key}' invalid: '{part}' not found in {type(obj).__name__}")
        obj = getattr(obj, part)

    final_key = parts[-1]
    if not hasattr(obj, final_key):
        raise KeyError(f"Config path '{dotted_key}' invalid: '{final_key}' not found in {type(obj).__name__}")

    setattr(obj, final_key, value)
