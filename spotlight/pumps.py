"""Pump configuration, per-pump state and the serial command format."""

from __future__ import annotations

import json
import math
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

DEFAULT_CONFIG_DIR = "/home/user/orange_data/config/pump"

_FLOAT_FIELDS = ("target_uL", "syringe_ID_mm", "lead_mm")
_INT_FIELDS = (
    "dispense_time_ms",
    "cycles",
    "delay",
    "steps_per_rev",
    "microsteps",
    "push_direction",
    "control_mode",
    "repeat_delay",
)
_BOOL_FIELDS = ("repeat",)


class ConfigError(Exception):
    """Raised when a pump configuration cannot be read or is malformed."""


def _number(data: Mapping[str, Any], key: str) -> int | float | bool:
    try:
        value = data[key]
    except KeyError:
        raise ConfigError(f"missing key {key!r}") from None
    if not isinstance(value, (int, float)):
        raise ConfigError(f"{key!r} must be a number, not {type(value).__name__}")
    return value


@dataclass
class PumpConfig:
    """Settings of one syringe pump as stored in a JSON config file."""

    target_uL: float
    dispense_time_ms: int
    cycles: int
    delay: int
    syringe_ID_mm: float
    steps_per_rev: int
    microsteps: int
    lead_mm: float
    push_direction: int
    control_mode: int
    repeat: bool
    repeat_delay: int

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PumpConfig":
        """Build a config from a JSON object, checking every field."""
        if not isinstance(data, Mapping):
            raise ConfigError("pump entry must be a JSON object")
        values: dict[str, Any] = {}
        for key in _FLOAT_FIELDS:
            values[key] = float(_number(data, key))
        for key in _INT_FIELDS:
            values[key] = int(_number(data, key))
        for key in _BOOL_FIELDS:
            if key not in data:
                raise ConfigError(f"missing key {key!r}")
            if not isinstance(data[key], bool):
                raise ConfigError(f"{key!r} must be a boolean")
            values[key] = data[key]
        return cls(**values)


@dataclass
class PumpState:
    """The adjustable settings of one pump in the control panel."""

    microliters: float = 2.0
    delivery_ms: int = 100
    cycles: int = 1000
    delay: int = 50
    push_direction: int = 1
    control_mode: int = 0
    repeat: bool = False
    repeat_delay: int = 10

    def apply_config(self, config: PumpConfig) -> None:
        """Take over the values a loaded config provides."""
        self.microliters = config.target_uL
        self.delivery_ms = config.dispense_time_ms
        self.cycles = config.cycles
        self.delay = config.delay
        self.push_direction = config.push_direction
        self.control_mode = config.control_mode
        self.repeat = config.repeat
        self.repeat_delay = config.repeat_delay


def list_json_files(folder: str | os.PathLike = DEFAULT_CONFIG_DIR) -> list[str]:
    """Return the paths of the ``.json`` files in ``folder``, sorted.

    A folder that does not exist yields an empty list.
    """
    base = Path(folder)
    try:
        names = [entry.name for entry in os.scandir(base)]
    except OSError:
        return []
    return [str(base / name) for name in sorted(names) if name.endswith(".json")]


def load_pump_config(path: str | os.PathLike) -> dict[str, PumpConfig]:
    """Read a config file; keys are the first character of each entry name."""
    try:
        with open(path, encoding="utf-8") as handle:
            document = json.load(handle)
    except OSError as exc:
        raise ConfigError(f"failed to open config {os.fspath(path)!r}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"error parsing config: {exc}") from exc

    if not isinstance(document, dict):
        raise ConfigError("config must be a JSON object")

    configs: dict[str, PumpConfig] = {}
    for key, value in document.items():
        if not key:
            raise ConfigError("pump name must not be empty")
        configs[key[0]] = PumpConfig.from_dict(value)
    return configs


def pulse_command(pump: str, push: bool, cycles: int, delay_us: int) -> str:
    """Format a command that runs ``cycles`` pulses ``delay_us`` apart."""
    return f"{'h' if push else 'l'}{pump} {int(cycles)} {int(delay_us)}\n"


def volume_to_pulses(
    microliters: float, dispense_time_ms: int, config: PumpConfig
) -> tuple[int, int]:
    """Convert a volume and a delivery time into (pulse count, pulse delay in µs)."""
    usteps_per_rev = config.steps_per_rev * config.microsteps
    usteps_per_mm = usteps_per_rev / config.lead_mm
    radius = config.syringe_ID_mm / 2.0
    stroke = microliters / (math.pi * radius * radius)
    pulse_count = int(stroke * usteps_per_mm)
    if pulse_count == 0:
        raise ValueError("volume too small: it amounts to no pulses")
    total_us = int(dispense_time_ms) * 1000
    delay = abs(total_us) // abs(pulse_count)
    if (total_us < 0) != (pulse_count < 0):
        delay = -delay
    return pulse_count, delay


def volume_command(
    pump: str,
    push: bool,
    microliters: float,
    dispense_time_ms: int,
    config: PumpConfig,
) -> str:
    """Format a command that dispenses ``microliters`` over ``dispense_time_ms``."""
    pulses, delay = volume_to_pulses(microliters, dispense_time_ms, config)
    return pulse_command(pump, push, pulses, delay)


__all__ = [
    "DEFAULT_CONFIG_DIR",
    "ConfigError",
    "PumpConfig",
    "PumpState",
    "list_json_files",
    "load_pump_config",
    "pulse_command",
    "volume_to_pulses",
    "volume_command",
]

_ = fields  # dataclass helpers kept available for introspection