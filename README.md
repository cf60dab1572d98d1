# spotlight

A library for a closed-loop visual and reward experiment. It drives
stepper-motor syringe pumps over a serial link, and it works out the
geometry and timing of the stimuli shown on a projection display.

## Modules

- `spotlight.pumps`: pump configuration and the command format.
  - `PumpConfig` holds one pump's settings. `PumpConfig.from_dict` checks
    every field and raises `ConfigError` if one is missing or has the wrong type.
  - `load_pump_config(path)` reads a JSON file and returns a dict keyed by
    the first character of each entry name. It raises `ConfigError` if the
    file cannot be opened, cannot be parsed or is malformed.
  - `list_json_files(folder)` returns the sorted `.json` paths in a folder.
    The default folder is `DEFAULT_CONFIG_DIR`. A missing folder gives an
    empty list.
  - `PumpState` holds the adjustable settings of one pump.
    `PumpState.apply_config` copies a loaded config into it.
  - `pulse_command(pump, push, cycles, delay_us)` formats a command line.
  - `volume_to_pulses(microliters, dispense_time_ms, config)` turns a volume
    into a pulse count and a pulse delay in µs. It uses the syringe bore, the
    lead screw, the steps per revolution and the microstepping. It raises
    `ValueError` if the volume comes to zero pulses.
  - `volume_command(...)` does the same conversion and returns the formatted
    command line.
- `spotlight.serialport`: the serial link.
  - `SerialPort` opens an 8-bit, non-blocking port through pyserial.
    - `open` and `close` open and close the port. `is_open` tells you
      whether it is open.
    - `write` sends data. `read` returns up to 256 bytes.
    - `send_pulse_command` and `send_volume_command` send a command and
      return its text. If the port is closed they return `None`.
    - It can be used as a context manager, which closes the port on exit.
    - An `opener` callable can be passed in place of the default opener.
      The default uses `serial.serial_for_url`, so pyserial URLs such as
      `loop://` work too.
  - `write` and `read` on a closed port raise `PortNotOpenError`.
  - `list_available_ports(dev_dir)` lists the `ttyUSB*` and `ttyACM*`
    devices in `dev_dir`.
- `spotlight.geometry`: stimulus geometry.
  - `box_to_screen` maps a camera `Box` to a mirrored screen position.
  - `circle_fan` and `ring_strip` return vertex lists for a filled circle
    and for a ring with alternating colour indices.
  - `collision_push` sums the pushes that move a circle out of overlapping
    obstacles.
  - `calibration_points` returns the four corners used for projector
    calibration.
  - `CentralCircle.step` moves the central circle for one frame. Objects
    push the circle, and it is clamped to the window. When the push is
    small, it drifts back towards the centre.
  - `lerp` interpolates between two points.
- `spotlight.animation`: stimulus timing.
  - `RotationAnimator` rotates the ring by random or fixed amounts, with a
    pause between rotations. Its behaviour is configured with
    `RotationSettings`.
  - `DynamicCircle` gives a radius that grows after `trigger(now)`, lingers
    at full size, and then drops to zero.
- `spotlight.dispenser`: the dispensing logic.
  - `Dispenser` manages three `PumpChannel`s, with ids `x`, `y` and `z`
    (`PUMP_IDS`). Each channel is in one of two modes:
    - Control mode 0 sends a volume command, using the loaded config for
      that pump. If no config is loaded for the pump, it raises `ConfigError`.
    - Other control modes send a pulse command.
  - `send` and `send_all` dispense once, or start the schedule of a pump set
    to repeat. Both raise `PortNotOpenError` when the port is closed.
  - `tick(now)` fires the schedules that are due and returns the pump ids
    that dispensed. When a channel is randomised, a new interval is drawn
    between `random_min_delay` and `random_max_delay`.
  - `stop` and `stop_all` end the schedules.
  - Every dispense is logged with a timestamp. `send` and `tick` also call
    the optional `on_dispense(now)` callback.

## Pump configuration files

A configuration file is a JSON object keyed by pump id:

```json
{
  "x": {
    "target_uL": 2.0,
    "dispense_time_ms": 100,
    "cycles": 1000,
    "delay": 50,
    "syringe_ID_mm": 4.78,
    "steps_per_rev": 200,
    "microsteps": 16,
    "lead_mm": 8.0,
    "push_direction": 1,
    "control_mode": 0,
    "repeat": false,
    "repeat_delay": 10
  }
}
```

Every field is required.

## Command format

Each command is one line with four parts:

1. `h` (push) or `l` (pull).
2. The pump id.
3. The number of pulses.
4. The delay between pulses in microseconds.

For example, `hx 1000 50`.

## Example

```python
import time

from spotlight.animation import DynamicCircle
from spotlight.dispenser import Dispenser
from spotlight.pumps import load_pump_config, volume_command
from spotlight.serialport import SerialPort, list_available_ports

configs = load_pump_config("pumps.json")
print(volume_command("x", True, 2.0, 100, configs["x"]))

ports = list_available_ports("/dev")
marker = DynamicCircle()
with SerialPort() as port:
    if ports:
        port.open(ports[0], 9600)
        dispenser = Dispenser(port, on_dispense=marker.trigger)
        dispenser.load_config("pumps.json")
        dispenser.send(0, time.monotonic())
        dispenser.tick(time.monotonic())
```

## What it does not do

- **No window or rendering.** The package computes vertex lists, positions
  and angles, but it draws nothing. Opening the projector window and
  rendering the stimuli is left to the caller.
- **No control panel.** There is no graphical interface for adjusting these
  settings.
- **No object tracker.** The package does not receive tracked bounding
  boxes. The caller supplies the `Box` values.
- **No command-line tool.**