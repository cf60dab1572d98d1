import json
import random
import re

import pytest

from spotlight.dispenser import Dispenser, PumpChannel
from spotlight.pumps import ConfigError, load_pump_config, volume_command
from spotlight.serialport import PortNotOpenError, SerialPort

ENTRY = {
    "target_uL": 4.0,
    "dispense_time_ms": 200,
    "cycles": 1500,
    "delay": 30,
    "syringe_ID_mm": 4.6,
    "steps_per_rev": 200,
    "microsteps": 16,
    "lead_mm": 8.0,
    "push_direction": 1,
    "control_mode": 0,
    "repeat": False,
    "repeat_delay": 20,
}


@pytest.fixture
def port():
    p = SerialPort()
    p.open("loop://")
    yield p
    p.close()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "pumps.json"
    path.write_text(json.dumps({"x": ENTRY, "y": dict(ENTRY, push_direction=0)}))
    return path


def make(port, **kwargs):
    logged = []
    dispenser = Dispenser(port, log=logged.append, **kwargs)
    return dispenser, logged


def pulse_mode(dispenser):
    for channel in dispenser.channels:
        channel.state.control_mode = 1


def test_channels_follow_pump_ids(port):
    dispenser, _ = make(port)
    assert [c.pump_id for c in dispenser.channels] == ["x", "y", "z"]
    assert dispenser.channels[0].state.cycles == 1000
    assert dispenser.channels[0].running is False


def test_send_pulse_command_writes_wire_format(port):
    dispenser, _ = make(port)
    pulse_mode(dispenser)
    command = dispenser.send(0, now=1.0)
    assert command == "hx 1000 50\n"
    assert port.read() == "hx 1000 50\n"


def test_pull_direction_uses_l(port):
    dispenser, _ = make(port)
    pulse_mode(dispenser)
    dispenser.channels[2].state.push_direction = 0
    assert dispenser.send(2, now=0.0) == "lz 1000 50\n"


def test_volume_mode_without_config_raises(port):
    dispenser, _ = make(port)
    with pytest.raises(ConfigError):
        dispenser.send(0, now=0.0)


def test_load_config_updates_channels(port, config_file):
    dispenser, _ = make(port)
    configs = dispenser.load_config(config_file)
    assert set(configs) == {"x", "y"}
    x, y, z = dispenser.channels
    assert x.state.microliters == ENTRY["target_uL"]
    assert x.state.delivery_ms == ENTRY["dispense_time_ms"]
    assert x.state.repeat_delay == ENTRY["repeat_delay"]
    assert y.state.push_direction == 0
    assert z.state.cycles == 1000


def test_send_volume_command_matches_pumps(port, config_file):
    dispenser, _ = make(port)
    dispenser.load_config(config_file)
    config = load_pump_config(config_file)["x"]
    expected = volume_command("x", True, 4.0, 200, config)
    assert dispenser.send(0, now=0.0) == expected
    assert port.read() == expected


def test_send_with_repeat_starts_schedule_only(port):
    dispenser, _ = make(port)
    pulse_mode(dispenser)
    dispenser.channels[1].state.repeat = True
    assert dispenser.send(1, now=5.0) is None
    assert dispenser.channels[1].running is True
    assert port.read() == ""


def test_tick_fires_when_due(port):
    dispenser, _ = make(port)
    pulse_mode(dispenser)
    channel = dispenser.channels[0]
    channel.state.repeat = True
    channel.state.repeat_delay = 10
    dispenser.send(0, now=100.0)
    assert dispenser.tick(100.0) == ["x"]
    assert channel.last_sent_time == 100.0
    assert dispenser.tick(105.0) == []
    assert dispenser.tick(110.0) == ["x"]
    assert port.read() == "hx 1000 50\n" * 2


def test_tick_ignores_stopped_channels(port):
    dispenser, _ = make(port)
    pulse_mode(dispenser)
    dispenser.channels[0].state.repeat = True
    dispenser.send(0, now=50.0)
    dispenser.tick(50.0)
    dispenser.stop(0)
    assert dispenser.channels[0].last_sent_time == 0.0
    assert dispenser.tick(1000.0) == []


def test_stop_all_resets_every_channel(port):
    dispenser, _ = make(port)
    for channel in dispenser.channels:
        channel.state.repeat = True
        channel.last_sent_time = 3.0
    dispenser.send_all(now=0.0)
    assert all(c.running for c in dispenser.channels)
    dispenser.stop_all()
    assert [(c.running, c.last_sent_time) for c in dispenser.channels] == [
        (False, 0.0)
    ] * 3


def test_randomized_delay_within_bounds(port):
    dispenser, _ = make(port, rng=random.Random(7))
    pulse_mode(dispenser)
    channel = dispenser.channels[0]
    channel.state.repeat = True
    channel.randomize = True
    channel.random_min_delay = 20
    channel.random_max_delay = 40
    dispenser.send(0, now=0.0)
    now = 0.0
    for _ in range(20):
        now += 100.0
        assert dispenser.tick(now) == ["x"]
        assert 20 <= channel.state.repeat_delay <= 40


def test_send_all_sends_three_commands(port):
    dispenser, logged = make(port)
    pulse_mode(dispenser)
    commands = dispenser.send_all(now=0.0)
    assert commands == ["hx 1000 50\n", "hy 1000 50\n", "hz 1000 50\n"]
    assert port.read() == "".join(commands)
    assert len(logged) == 3


def test_log_format(port):
    dispenser, logged = make(port)
    pulse_mode(dispenser)
    dispenser.send(1, now=0.0)
    assert len(logged) == 1
    assert re.fullmatch(
        r"\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\] Dispensing pump y", logged[0]
    )


def test_on_dispense_called_by_send_not_send_all(port):
    triggered = []
    dispenser, _ = make(port, on_dispense=triggered.append)
    pulse_mode(dispenser)
    dispenser.send(0, now=12.5)
    assert triggered == [12.5]
    dispenser.send_all(now=20.0)
    assert triggered == [12.5]


def test_closed_port(port):
    dispenser, _ = make(port)
    pulse_mode(dispenser)
    dispenser.channels[0].state.repeat = True
    dispenser.channels[0].running = True
    port.close()
    with pytest.raises(PortNotOpenError):
        dispenser.send(0, now=0.0)
    with pytest.raises(PortNotOpenError):
        dispenser.send_all(now=0.0)
    assert dispenser.tick(100.0) == []


def test_channel_direction_property():
    channel = PumpChannel("x")
    assert channel.is_push is True
    channel.state.push_direction = 0
    assert channel.is_push is False