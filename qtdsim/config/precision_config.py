#!filepath: qtdsim/config/precision_config.py
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class PrecisionConfig(BaseModel):
    """
    Decimal 精度（scale = 小数位数）

    internal_scale 至少 15：Rs/R 与 Rs/(R+h) 只在小数第 9~10 位不同，
    精度不够时信号会被截成 0。
    """
    model_config = ConfigDict(frozen=True)

    working_digits: int = Field(default=100, ge=32)
    internal_scale: int = Field(default=15, ge=15)
    time_scale: int = Field(default=10, ge=0)
    quantum_scale: int = Field(default=15, ge=0)
    difference_scale: int = Field(default=2, ge=0)

    rounding: Literal["ROUND_DOWN", "ROUND_HALF_UP", "ROUND_HALF_EVEN"] = "ROUND_DOWN"
