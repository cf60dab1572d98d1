"""Syringe pump configuration, serial commands, dispensing schedules and stimulus geometry."""

__version__ = "0.1.0"
__all__ = ["animation", "dispenser", "geometry", "pumps", "serialport"]