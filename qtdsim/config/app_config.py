#!filepath: qtdsim/config/app_config.py
import os

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from .log_config import LogConfig
from .physics_config import PhysicsConfig
from .precision_config import PrecisionConfig
from .simulation_config import SimulationConfig
from .device_config import DeviceConfig
from .report_config import ReportConfig


def project_root() -> str:
    """
    返回项目根目录（基于当前文件位置推导）:
    qtdsim/config/app_config.py → qtdsim/config → qtdsim → project_root
    """
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "../../"))


class AppConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    log: LogConfig = Field(default_factory=LogConfig)
    physics: PhysicsConfig = Field(default_factory=PhysicsConfig)
    precision: PrecisionConfig = Field(default_factory=PrecisionConfig)
    simulation: SimulationConfig = Field(default_factory=SimulationConfig)
    device: DeviceConfig = Field(default_factory=DeviceConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)

    @classmethod
    def load(cls, path: str | None = None) -> "AppConfig":
        """
        加载 YAML 配置 + .env
        - 默认使用 qtdsim/config/base.yml
        - 环境变量 QTD_DEVICE / QTD_RESULTS_DIR 覆盖设备路径和结果目录
        """
        root = project_root()

        # 1) 先加载 .env（在项目根目录下）
        load_dotenv(os.path.join(root, ".env"))

        # 2) 决定配置文件路径
        if path is None:
            path = os.path.join(os.path.dirname(__file__), "base.yml")

        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        # 3) 读取 YAML（空文件 → 全部默认值）
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        # `device:` 这类空 section 等同于缺省
        raw = {k: v for k, v in raw.items() if v is not None}

        # 4) env 覆盖
        device_path = os.getenv("QTD_DEVICE")
        if device_path:
            raw["device"] = {**(raw.get("device") or {}), "path": device_path}

        results_dir = os.getenv("QTD_RESULTS_DIR")
        if results_dir:
            raw["report"] = {**(raw.get("report") or {}), "results_dir": results_dir}

        return cls(**raw)
