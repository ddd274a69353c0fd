#!filepath: qtdsim/config/simulation_config.py
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class SimulationConfig(BaseModel):
    """
    一次仿真 run 的参数（不可变）

    step / max_altitude 的合法性由 SimulationDriver 检查（抛 InputError），
    这里不做约束，保证非法值能以 InputError 的形式返回给调用方。
    """
    model_config = ConfigDict(frozen=True)

    step: int = 1000
    max_altitude: int = 100000

    reference_offset: Decimal = Decimal("1.0")
    base_increment: Decimal = Decimal("0.1")

    # 每行之间的展示停顿（秒）
    pause_seconds: float = 0.0

    clamp_negative_difference: bool = True
    fsync_rows: bool = True

    def quick(self) -> "SimulationConfig":
        """快速仿真：10 km 步长，到 100 km 为止（11 行）"""
        return self.model_copy(update={"step": 10000, "max_altitude": 100000})
