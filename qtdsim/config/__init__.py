#!filepath: qtdsim/config/__init__.py
from .app_config import AppConfig
from .log_config import LogConfig
from .physics_config import PhysicsConfig
from .precision_config import PrecisionConfig
from .simulation_config import SimulationConfig
from .device_config import DeviceConfig, DeviceMode
from .report_config import ReportConfig

__all__ = [
    "AppConfig",
    "LogConfig",
    "PhysicsConfig",
    "PrecisionConfig",
    "SimulationConfig",
    "DeviceConfig",
    "DeviceMode",
    "ReportConfig",
]
