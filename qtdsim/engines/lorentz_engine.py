#!filepath: qtdsim/engines/lorentz_engine.py
from __future__ import annotations

from decimal import Decimal

from qtdsim.core.types import VelocitySample
from qtdsim.engines.base import BaseEngine
from qtdsim.utils.errors import InputError

GAMMA_SCALE = 6
VELOCITY_SCALE = 4


class LorentzEngine(BaseEngine[Decimal, VelocitySample]):
    """
    狭义相对论 Lorentz 因子：gamma = 1 / sqrt(1 - v^2)，v 以 c 为单位

    - |v| >= 1 属于非法输入 → InputError
    - 计算失败 → gamma = 1（退化为无膨胀）
    """

    site = "lorentz"

    def process(self, event: Decimal) -> VelocitySample:
        return VelocitySample(velocity=event, gamma=self.gamma(event))

    def gamma(self, velocity) -> Decimal:
        ev = self.evaluator
        v = ev.operand(velocity)
        if abs(v) >= 1:
            raise InputError(f"[Lorentz] velocity must be below c, got {v}c")

        res = ev.evaluate(
            lambda: 1 / ev.sqrt(1 - v * v),
            GAMMA_SCALE,
            label="1 / sqrt(1 - v^2)",
            rounding="ROUND_HALF_UP",
        )
        if not res.ok:
            return self._fallback(res.error, Decimal("1").quantize(Decimal(1).scaleb(-GAMMA_SCALE)))
        return res.value
