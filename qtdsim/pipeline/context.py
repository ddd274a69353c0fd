#!filepath: qtdsim/pipeline/context.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from qtdsim.core.types import ProjectionRow, SimulationSeries, Statistics, VelocitySample


@dataclass
class SimulationContext:
    """
    SimulationContext = Pipeline 运行期唯一上下文

    - Pipeline 负责构造
    - Step 之间唯一通信载体
    - 只存事实 / 中间结果，不放业务逻辑
    """

    # identity
    run_id: str
    results_dir: Path

    # run 参数（None → 使用 SimulationConfig）
    step: Optional[int] = None
    max_altitude: Optional[int] = None
    output_file: Optional[Path] = None

    # result layer
    series: Optional[SimulationSeries] = None
    statistics: Optional[Statistics] = None
    projection: List[ProjectionRow] = field(default_factory=list)
    velocity_samples: List[VelocitySample] = field(default_factory=list)

    # runtime flags
    abort_pipeline: bool = False
    abort_reason: Optional[str] = None
