#!filepath: qtdsim/engines/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar, Iterable

from qtdsim.core.precision import PrecisionEvaluator
from qtdsim.observability.metrics import FallbackCounter
from qtdsim.utils.errors import EvaluationError

InEvent = TypeVar("InEvent")
OutEvent = TypeVar("OutEvent")


class BaseEngine(ABC, Generic[InEvent, OutEvent]):
    """
    Engine 抽象基类（Atomic Engine Layer）：

    - 不做任何 I/O（不读写文件 / 设备）
    - 专注“输入 → 输出”的纯数值逻辑
    - 计算失败时由子类决定 fallback，并记入 FallbackCounter
    """

    site: str = ""

    def __init__(
        self,
        evaluator: PrecisionEvaluator | None = None,
        counter: FallbackCounter | None = None,
    ):
        self.evaluator = evaluator if evaluator is not None else PrecisionEvaluator()
        self.counter = counter if counter is not None else FallbackCounter()

    @abstractmethod
    def process(self, event: InEvent) -> OutEvent:
        """
        处理单个输入（最小粒度单位）。
        """
        raise NotImplementedError

    def process_stream(self, events: Iterable[InEvent]) -> Iterable[OutEvent]:
        for ev in events:
            yield self.process(ev)

    def _fallback(self, error: EvaluationError, value):
        self.counter.hit(self.site or self.__class__.__name__, error.reason)
        return value
