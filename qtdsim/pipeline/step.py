#!filepath: qtdsim/pipeline/step.py
from __future__ import annotations

from qtdsim.pipeline.context import SimulationContext
from qtdsim.observability.instrumentation import (
    Instrumentation,
    NoOpInstrumentation,
)


class PipelineStep:
    """
    Pipeline Step 基类

    职责：
      1. 作为 orchestration 层（调用 driver / engine / analyzer）
      2. 提供 Step 级时间语义边界（parent scope）

    约束：
      - Step 本身不进入 timeline（timed() 为 record=False）
      - Step 行为不依赖 inst 是否存在
    """

    stage: str = ""

    def __init__(self, inst: Instrumentation | None = None):
        self.inst: Instrumentation | NoOpInstrumentation = (
            inst if inst is not None else NoOpInstrumentation()
        )

    @property
    def step_name(self) -> str:
        """默认使用类名作为 Step 名称。"""
        return self.__class__.__name__

    def timed(self):
        return self.inst.timer(self.step_name, record=False)

    def run(self, ctx: SimulationContext) -> SimulationContext:
        raise NotImplementedError
