#!filepath: qtdsim/engines/quantum_engine.py
from __future__ import annotations

from decimal import Decimal

from qtdsim.config.physics_config import PhysicsConfig
from qtdsim.config.precision_config import PrecisionConfig
from qtdsim.engines.base import BaseEngine


class QuantumEngine(BaseEngine[Decimal, Decimal]):
    """
    时间量子化：

        units       = floor(t / quantum)
        discretized = units * quantum

    结果小数位 = max(quantum_scale, quantum 自身的小数位)，
    乘积保留 quantum 的全部位数，因此：
        discretized <= t,  t - discretized < quantum,  且幂等。

    失败 → 原样返回输入。
    """

    site = "quantum"

    def __init__(
        self,
        physics: PhysicsConfig | None = None,
        precision: PrecisionConfig | None = None,
        evaluator=None,
        counter=None,
    ):
        super().__init__(evaluator=evaluator, counter=counter)
        self.physics = physics or PhysicsConfig()
        self.precision = precision or PrecisionConfig()

    @property
    def quantum(self) -> Decimal:
        return self.physics.time_quantum

    @property
    def result_scale(self) -> int:
        quantum_digits = max(0, -self.quantum.normalize().as_tuple().exponent)
        return max(self.precision.quantum_scale, quantum_digits)

    def process(self, event: Decimal) -> Decimal:
        return self.discretize(event)

    def discretize(self, continuous_time: Decimal) -> Decimal:
        ev = self.evaluator
        q = self.quantum

        units = ev.evaluate(lambda: ev.floor(ev.div(continuous_time, q)), 0, label="floor(t / quantum)")
        if not units.ok:
            return self._fallback(units.error, continuous_time)

        discretized = ev.evaluate(
            lambda: units.value * ev.operand(q),
            self.result_scale,
            label="units * quantum",
        )
        if not discretized.ok:
            return self._fallback(discretized.error, continuous_time)

        return discretized.value
