#!filepath: qtdsim/config/device_config.py
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class DeviceMode(str, Enum):
    AUTO = "auto"
    HARDWARE = "hardware"
    SIMULATION = "simulation"


class DeviceConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str = "/dev/ttyUSB0"
    baudrate: int = 115200
    timeout_seconds: float = Field(default=1.0, gt=0)
    mode: DeviceMode = DeviceMode.AUTO
    command: str = "TIME_CALC"
    open_attempts: int = Field(default=2, ge=1)
