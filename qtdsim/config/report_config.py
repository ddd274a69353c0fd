#!filepath: qtdsim/config/report_config.py
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ReportConfig(BaseModel):
    """
    结果目录 + 分析投影参数

    - scale_max : 满格对应的差值（ns）
    - bar_width : 满格长度
    - samples / seed : 速度样本（Lorentz）生成参数
    """
    model_config = ConfigDict(frozen=True)

    results_dir: Optional[str] = None
    scale_max: Decimal = Field(default=Decimal("100"), gt=0)
    bar_width: int = Field(default=50, ge=1)

    samples: int = Field(default=20, ge=1)
    seed: Optional[int] = None
