"""Serial link to the pump controller."""

from __future__ import annotations

import os
from pathlib import Path
from types import TracebackType
from typing import Callable

import serial

from spotlight.pumps import PumpConfig, pulse_command, volume_command

_READ_SIZE = 256
_PORT_MARKERS = ("ttyUSB", "ttyACM")


class PortNotOpenError(OSError):
    """Raised when data is written to or read from a closed port."""


def _default_opener(port_name: str, baud_rate: int) -> serial.SerialBase:
    return serial.serial_for_url(
        port_name, baudrate=baud_rate, bytesize=serial.EIGHTBITS, timeout=0
    )


class SerialPort:
    """A non-blocking 8N1 serial port that speaks the pump command format."""

    def __init__(
        self, opener: Callable[[str, int], serial.SerialBase] = _default_opener
    ) -> None:
        self._opener = opener
        self._port: serial.SerialBase | None = None

    def open(self, port_name: str, baud_rate: int = 9600) -> None:
        """Open ``port_name``; raises ``OSError`` if the device cannot be opened."""
        self.close()
        self._port = self._opener(port_name, baud_rate)

    def close(self) -> None:
        """Close the port; closing a closed port does nothing."""
        if self._port is not None:
            port, self._port = self._port, None
            port.close()

    def is_open(self) -> bool:
        return self._port is not None

    def _require_open(self) -> serial.SerialBase:
        if self._port is None:
            raise PortNotOpenError("serial port is not open")
        return self._port

    def write(self, data: str) -> int:
        """Send ``data`` and return the number of bytes written."""
        port = self._require_open()
        return port.write(data.encode("latin-1")) or 0

    def read(self) -> str:
        """Return whatever is waiting, up to 256 bytes; empty if nothing is."""
        port = self._require_open()
        return bytes(port.read(_READ_SIZE)).decode("latin-1")

    def send_pulse_command(
        self, pump: str, push: bool, cycles: int, delay_us: int
    ) -> str | None:
        """Send a pulse command; returns it, or ``None`` if the port is closed."""
        if not self.is_open():
            return None
        command = pulse_command(pump, push, cycles, delay_us)
        self.write(command)
        return command

    def send_volume_command(
        self,
        pump: str,
        push: bool,
        microliters: float,
        dispense_time_ms: int,
        config: PumpConfig,
    ) -> str | None:
        """Send a volume command; returns it, or ``None`` if the port is closed."""
        if not self.is_open():
            return None
        command = volume_command(pump, push, microliters, dispense_time_ms, config)
        self.write(command)
        return command

    def __enter__(self) -> "SerialPort":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def list_available_ports(dev_dir: str | os.PathLike = "/dev") -> list[str]:
    """Return USB and ACM serial devices found in ``dev_dir``, sorted."""
    base = Path(dev_dir)
    try:
        names = [entry.name for entry in os.scandir(base)]
    except OSError:
        return []
    return [
        str(base / name)
        for name in sorted(names)
        if any(marker in name for marker in _PORT_MARKERS)
    ]


__all__ = ["PortNotOpenError", "SerialPort", "list_available_ports"]