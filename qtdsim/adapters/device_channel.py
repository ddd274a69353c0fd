#!filepath: qtdsim/adapters/device_channel.py
from __future__ import annotations

import os
import select
import stat
import time
from abc import ABC, abstractmethod
from decimal import Decimal

from qtdsim import logs
from qtdsim.config.device_config import DeviceConfig, DeviceMode
from qtdsim.storage.series_csv import format_decimal
from qtdsim.utils.errors import ChannelError, ChannelTimeout
from qtdsim.utils.retry import Retry


class DeviceChannel(ABC):
    """
    外部设备通道（FPGA / 模拟）

    - send() 同步调用，带超时上限
    - 返回值是不透明的状态字符串，Driver 只记录不解析
    """

    mode: DeviceMode

    @abstractmethod
    def send(self, command: str, altitude: int, time_factor: Decimal) -> str:
        ...

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class SimulatedChannel(DeviceChannel):
    """
    无硬件时的确定性应答：SIM_OK:ALT=<altitude>,FACTOR=<factor>
    """

    mode = DeviceMode.SIMULATION

    def send(self, command: str, altitude: int, time_factor: Decimal) -> str:
        return f"SIM_OK:ALT={altitude},FACTOR={format_decimal(time_factor)}"


class SerialChannel(DeviceChannel):
    """
    串口字符设备（默认 115200 8N1）

    请求：CMD:<command>,ALT:<altitude>,TIME:<factor>\\n
    应答：读到换行或超时为止；超时且无任何数据 → ChannelTimeout
    读写 OSError（设备拔出 / EPIPE / EIO）→ ChannelError
    """

    mode = DeviceMode.HARDWARE

    def __init__(self, cfg: DeviceConfig):
        self.cfg = cfg
        self.fd: int | None = None

    def open(self) -> "SerialChannel":
        flags = os.O_RDWR | getattr(os, "O_NOCTTY", 0) | getattr(os, "O_NONBLOCK", 0)
        self.fd = Retry.run(
            os.open,
            self.cfg.path,
            flags,
            exceptions=(OSError,),
            max_attempts=self.cfg.open_attempts,
            delay=0.2,
        )
        self._configure_line()
        logs.info(f"[Device] connected: {self.cfg.path}")
        return self

    def _configure_line(self) -> None:
        try:
            import termios
        except ImportError:
            return

        baud = getattr(termios, f"B{self.cfg.baudrate}", None)
        try:
            attrs = termios.tcgetattr(self.fd)
        except termios.error:
            logs.warning(f"[Device] {self.cfg.path} is not a tty, line settings skipped")
            return

        # cflag: 8 data bits, no parity, 1 stop bit
        attrs[2] = (attrs[2] & ~(termios.PARENB | termios.CSTOPB | termios.CSIZE)) | termios.CS8
        if baud is not None:
            attrs[4] = baud
            attrs[5] = baud
        termios.tcsetattr(self.fd, termios.TCSANOW, attrs)

    def send(self, command: str, altitude: int, time_factor: Decimal) -> str:
        if self.fd is None:
            self.open()

        line = f"CMD:{command},ALT:{altitude},TIME:{format_decimal(time_factor)}\n"
        try:
            os.write(self.fd, line.encode("ascii"))
            return self._read_line()
        except OSError as e:
            raise ChannelError(f"{self.cfg.path}: {e}") from e

    def _read_line(self) -> str:
        """
        整个应答共用一个 deadline：持续有字节但没有换行的设备也只占用 timeout_seconds
        """
        deadline = time.monotonic() + self.cfg.timeout_seconds
        buf = bytearray()
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            ready, _, _ = select.select([self.fd], [], [], remaining)
            if not ready:
                break
            chunk = os.read(self.fd, 256)
            if not chunk:
                break
            buf += chunk
            if b"\n" in chunk:
                break

        if not buf:
            raise ChannelTimeout(self.cfg.timeout_seconds, self.cfg.path)
        return buf.decode("ascii", errors="replace").split("\n", 1)[0].strip()

    def close(self) -> None:
        if self.fd is not None:
            os.close(self.fd)
            self.fd = None


def is_char_device(path: str) -> bool:
    try:
        return stat.S_ISCHR(os.stat(path).st_mode)
    except OSError:
        return False


def open_channel(cfg: DeviceConfig | None = None) -> DeviceChannel:
    """
    hardware: 强制串口；simulation: 强制模拟；auto: 字符设备存在则用串口
    """
    cfg = cfg or DeviceConfig()

    if cfg.mode == DeviceMode.SIMULATION:
        return SimulatedChannel()

    if cfg.mode == DeviceMode.AUTO and not is_char_device(cfg.path):
        logs.warning(f"[Device] {cfg.path} not found, simulation mode")
        return SimulatedChannel()

    return SerialChannel(cfg).open()


def probe_channel(channel: DeviceChannel) -> str:
    """连接测试：TEST, altitude=0, factor=1.0"""
    response = channel.send("TEST", 0, Decimal("1.0"))
    logs.info(f"[Device] probe ({channel.mode.value}) → {response}")
    return response
