#!filepath: qtdsim/config/physics_config.py
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class PhysicsConfig(BaseModel):
    """
    物理常量（弱场近似）

    - earth_radius          : 参考面半径 R（m）
    - schwarzschild_radius  : 史瓦西半径 Rs（m），Rs ≪ R
    - time_quantum          : 最小时间量子（s），默认 Planck time
    """
    model_config = ConfigDict(frozen=True)

    earth_radius: Decimal = Field(default=Decimal("6371000"), gt=0)
    schwarzschild_radius: Decimal = Field(default=Decimal("0.0089"), ge=0)
    time_quantum: Decimal = Field(default=Decimal("5.39e-44"), gt=0)
