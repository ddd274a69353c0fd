#!filepath: tests/adapters/test_device_channel.py
import os
import socket
import time
from types import SimpleNamespace
from decimal import Decimal

import pytest

from qtdsim.adapters import device_channel as dc
from qtdsim.adapters.device_channel import (
    SerialChannel,
    SimulatedChannel,
    is_char_device,
    open_channel,
    probe_channel,
)
from qtdsim.config import DeviceConfig, DeviceMode
from qtdsim.utils.errors import ChannelError, ChannelTimeout


def test_simulated_ack():
    ch = SimulatedChannel()
    assert ch.send("TIME_CALC", 1000, Decimal("1.0999999999")) == "SIM_OK:ALT=1000,FACTOR=1.0999999999"


def test_probe_uses_test_command():
    assert probe_channel(SimulatedChannel()) == "SIM_OK:ALT=0,FACTOR=1.0"


def test_auto_falls_back_to_simulation(tmp_path):
    """设备文件不存在 → 模拟模式"""
    cfg = DeviceConfig(path=str(tmp_path / "ttyUSB9"), mode=DeviceMode.AUTO)
    ch = open_channel(cfg)

    assert isinstance(ch, SimulatedChannel)
    assert ch.mode == DeviceMode.SIMULATION


def test_auto_regular_file_is_not_device(tmp_path):
    fake = tmp_path / "ttyUSB0"
    fake.write_text("", encoding="utf-8")

    assert not is_char_device(str(fake))
    assert isinstance(open_channel(DeviceConfig(path=str(fake))), SimulatedChannel)


def test_forced_simulation():
    assert isinstance(open_channel(DeviceConfig(mode="simulation")), SimulatedChannel)


def test_hardware_open_retries_then_raises(tmp_path, monkeypatch):
    monkeypatch.setattr("time.sleep", lambda t: None)
    cfg = DeviceConfig(path=str(tmp_path / "missing"), mode=DeviceMode.HARDWARE, open_attempts=2)

    with pytest.raises(OSError):
        open_channel(cfg)


def test_serial_send_and_timeout():
    """socketpair 模拟串口：写请求、读应答；无应答 → ChannelTimeout"""
    device, peer = socket.socketpair()

    ch = SerialChannel(DeviceConfig(timeout_seconds=0.05))
    ch.fd = os.dup(device.fileno())

    peer.sendall(b"ACK:1000\n")
    assert ch.send("TIME_CALC", 1000, Decimal("1.5")) == "ACK:1000"
    assert peer.recv(64) == b"CMD:TIME_CALC,ALT:1000,TIME:1.5\n"

    with pytest.raises(ChannelTimeout):
        ch.send("TIME_CALC", 2000, Decimal("1.6"))

    ch.close()
    assert ch.fd is None
    device.close()
    peer.close()


def test_serial_write_failure_is_channel_error():
    """读端已关闭的 pipe：EPIPE → ChannelError（不是裸 OSError）"""
    r, w = os.pipe()
    os.close(r)
    ch = SerialChannel(DeviceConfig(timeout_seconds=0.01))
    ch.fd = w

    with pytest.raises(ChannelError) as e:
        ch.send("TIME_CALC", 0, Decimal("1"))

    assert isinstance(e.value.__cause__, BrokenPipeError)
    ch.close()


def test_serial_partial_line_returned_after_deadline():
    device, peer = socket.socketpair()
    ch = SerialChannel(DeviceConfig(timeout_seconds=0.05))
    ch.fd = os.dup(device.fileno())

    peer.sendall(b"PART")
    assert ch.send("TIME_CALC", 0, Decimal("1")) == "PART"

    ch.close()
    device.close()
    peer.close()


def test_serial_read_bounded_without_newline(monkeypatch):
    """设备持续发字节但不发换行：整个应答不超过 timeout_seconds"""
    waits = []

    def fake_select(r, w, x, timeout):
        waits.append(timeout)
        return r, [], []

    def fake_read(fd, n):
        time.sleep(0.005)
        return b"x"

    monkeypatch.setattr(dc, "select", SimpleNamespace(select=fake_select))
    monkeypatch.setattr(dc, "os", SimpleNamespace(write=lambda fd, data: len(data), read=fake_read))

    ch = SerialChannel(DeviceConfig(timeout_seconds=0.1))
    ch.fd = 99

    start = time.monotonic()
    response = ch.send("TIME_CALC", 0, Decimal("1"))
    elapsed = time.monotonic() - start

    assert response and set(response) == {"x"}
    assert elapsed < 0.5
    assert all(0 < t <= 0.1 for t in waits)
    assert waits == sorted(waits, reverse=True)
