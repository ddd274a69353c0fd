#!filepath: qtdsim/observability/metrics.py
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Any

from qtdsim import logs


@dataclass
class MetricRecorder:
    enabled: bool = True
    metrics: Dict[str, Any] = field(default_factory=dict)

    def record(self, name: str, value: Any):
        if not self.enabled:
            return
        self.metrics[name] = value
        logs.info(f"[Metric] {name} = {value}")


@dataclass
class FallbackCounter:
    """
    数值降级计数（诊断用）

    Engine 在 EvaluationError 时返回 fallback 值，同时在这里记一笔，
    数据本身不体现降级，测试通过计数观察。
    """
    counts: Counter = field(default_factory=Counter)

    def hit(self, site: str, reason: str = "") -> None:
        self.counts[site] += 1
        logs.debug(f"[Fallback] {site}: {reason}")

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def snapshot(self) -> Dict[str, int]:
        return dict(self.counts)

    def reset(self) -> None:
        self.counts.clear()
