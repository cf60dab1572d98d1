"""Pump channels and the dispensing logic behind the control panel."""

from __future__ import annotations

import os
import random
import time
from dataclasses import dataclass, field
from typing import Callable, Mapping

from spotlight.pumps import ConfigError, PumpConfig, PumpState, load_pump_config
from spotlight.serialport import PortNotOpenError, SerialPort

PUMP_IDS = ("x", "y", "z")


@dataclass
class PumpChannel:
    """One pump: its adjustable settings and its repeat schedule.

    Times are in seconds on the caller's clock.
    """

    pump_id: str
    state: PumpState = field(default_factory=PumpState)
    randomize: bool = False
    random_min_delay: int = 5
    random_max_delay: int = 100
    last_sent_time: float = 0.0
    running: bool = False

    @property
    def is_push(self) -> bool:
        return self.state.push_direction == 1


def _timestamp() -> str:
    return time.strftime("[%Y-%m-%d %H:%M:%S] ", time.localtime())


class Dispenser:
    """Sends pump commands over a serial port, once or on a repeating schedule."""

    def __init__(
        self,
        port: SerialPort,
        configs: Mapping[str, PumpConfig] | None = None,
        rng: random.Random | None = None,
        on_dispense: Callable[[float], None] | None = None,
        log: Callable[[str], None] = print,
    ) -> None:
        self.port = port
        self.configs: dict[str, PumpConfig] = dict(configs or {})
        self.rng = rng if rng is not None else random.Random()
        self.on_dispense = on_dispense
        self.log = log
        self.channels = [PumpChannel(pump_id) for pump_id in PUMP_IDS]

    def load_config(self, path: str | os.PathLike) -> dict[str, PumpConfig]:
        """Load a config file, replace the current configs and update the channels."""
        configs = load_pump_config(path)
        self.configs = configs
        for channel in self.channels:
            config = configs.get(channel.pump_id)
            if config is not None:
                channel.state.apply_config(config)
        return configs

    def _require_open(self) -> None:
        if not self.port.is_open():
            raise PortNotOpenError("serial port is not open")

    def _dispense(self, channel: PumpChannel) -> str | None:
        state = channel.state
        if state.control_mode == 0:
            config = self.configs.get(channel.pump_id)
            if config is None:
                raise ConfigError(f"no config loaded for pump {channel.pump_id!r}")
            return self.port.send_volume_command(
                channel.pump_id,
                channel.is_push,
                state.microliters,
                state.delivery_ms,
                config,
            )
        return self.port.send_pulse_command(
            channel.pump_id, channel.is_push, state.cycles, state.delay
        )

    def _announce(self, channel: PumpChannel) -> None:
        self.log(f"{_timestamp()}Dispensing pump {channel.pump_id}")

    def _notify(self, now: float) -> None:
        if self.on_dispense is not None:
            self.on_dispense(now)

    def send(self, index: int, now: float) -> str | None:
        """Send one pump's command, or start its schedule if it repeats.

        Returns the command written, or ``None`` when a schedule was started.
        """
        self._require_open()
        channel = self.channels[index]
        command = None
        if channel.state.repeat:
            channel.running = True
        else:
            command = self._dispense(channel)
        self._announce(channel)
        self._notify(now)
        return command

    def send_all(self, now: float) -> list[str]:
        """Send every pump's command, starting the schedules of repeating pumps."""
        self._require_open()
        commands: list[str] = []
        for channel in self.channels:
            if channel.state.repeat:
                channel.running = True
            else:
                command = self._dispense(channel)
                if command is not None:
                    commands.append(command)
            self._announce(channel)
        return commands

    def stop(self, index: int) -> None:
        """Stop one pump's repeating schedule."""
        channel = self.channels[index]
        channel.running = False
        channel.last_sent_time = 0.0

    def stop_all(self) -> None:
        for index in range(len(self.channels)):
            self.stop(index)

    def tick(self, now: float) -> list[str]:
        """Fire every running schedule that is due; return the pumps that dispensed."""
        if not self.port.is_open():
            return []
        fired: list[str] = []
        for channel in self.channels:
            state = channel.state
            if not (
                state.repeat
                and channel.running
                and now - channel.last_sent_time >= state.repeat_delay
            ):
                continue
            self._dispense(channel)
            if channel.randomize:
                state.repeat_delay = self.rng.randint(
                    channel.random_min_delay, channel.random_max_delay
                )
            channel.last_sent_time = now
            self._announce(channel)
            self._notify(now)
            fired.append(channel.pump_id)
        return fired


__all__ = ["PUMP_IDS", "Dispenser", "PumpChannel"]