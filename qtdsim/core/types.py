#!filepath: qtdsim/core/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from qtdsim.utils.errors import SimulationError


@dataclass(frozen=True, slots=True)
class SimulationRecord:
    """
    一行仿真结果（一个 altitude step）

    - altitude      : m，从 0 开始按 step 递增
    - earth_time    : s，独立参考时钟（不由其它列推导）
    - dilated_time  : s，只依赖 (altitude, earth_time)
    - quantum_time  : s，只依赖 dilated_time
    - difference_ns : ns，(dilated_time - earth_time) * 1e9
    """
    altitude: int
    earth_time: Decimal
    dilated_time: Decimal
    quantum_time: Decimal
    difference_ns: Decimal


@dataclass
class SimulationSeries:
    """
    SimulationSeries（append-only）

    生命周期：
      - run 开始时由 Driver 创建（空）
      - 每个 altitude step 追加一次
      - 循环结束（或被取消）时 finalize()，之后只读
    """

    created_at: datetime
    path: Optional[Path] = None
    records: List[SimulationRecord] = field(default_factory=list)

    closed: bool = False
    completed: bool = False

    # 诊断信息
    fallbacks: Dict[str, int] = field(default_factory=dict)
    channel_timeouts: int = 0

    @property
    def series_id(self) -> str:
        return self.created_at.strftime("%Y%m%d_%H%M%S")

    @property
    def fallback_total(self) -> int:
        return sum(self.fallbacks.values())

    def append(self, record: SimulationRecord) -> None:
        if self.closed:
            raise SimulationError(f"[Series {self.series_id}] closed for writes")

        if self.records and record.altitude <= self.records[-1].altitude:
            raise SimulationError(
                f"[Series {self.series_id}] altitude must increase: "
                f"{self.records[-1].altitude} -> {record.altitude}"
            )

        self.records.append(record)

    def finalize(
        self,
        *,
        completed: bool = True,
        fallbacks: Optional[Dict[str, int]] = None,
        channel_timeouts: int = 0,
    ) -> "SimulationSeries":
        self.closed = True
        self.completed = completed
        self.fallbacks = dict(fallbacks or {})
        self.channel_timeouts = channel_timeouts
        return self

    def differences(self) -> List[Decimal]:
        return [r.difference_ns for r in self.records]

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[SimulationRecord]:
        return iter(self.records)


@dataclass(frozen=True)
class Statistics:
    max: Decimal
    mean: Decimal
    count: int = 0

    def to_dict(self) -> Dict[str, str | int]:
        return {"max": format(self.max, "f"), "mean": format(self.mean, "f"), "count": self.count}


@dataclass(frozen=True)
class ProjectionRow:
    """
    给外部 bar / graph renderer 的一行：
    altitude_km, 限幅后的差值（ns）, bar 长度
    """
    altitude_km: int
    difference: Decimal
    bar_length: int


@dataclass(frozen=True)
class VelocitySample:
    """相对论速度样本：velocity 以 c 为单位，gamma 为 Lorentz 因子"""
    velocity: Decimal
    gamma: Decimal
