#!filepath: qtdsim/engines/dilation_engine.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from qtdsim.config.physics_config import PhysicsConfig
from qtdsim.config.precision_config import PrecisionConfig
from qtdsim.engines.base import BaseEngine


@dataclass(frozen=True, slots=True)
class DilationQuery:
    altitude: int
    reference_time: Decimal


class DilationEngine(BaseEngine[DilationQuery, Decimal]):
    """
    引力时间膨胀（弱场近似）

        r_alt    = R + altitude
        f_s      = sqrt(1 - Rs / R)
        f_a      = sqrt(1 - Rs / r_alt)
        ratio    = f_s / f_a
        dilated  = reference_time * ratio

    中间量保留 internal_scale 位小数，结果保留 time_scale 位。
    任一步失败 → 原样返回 reference_time（不膨胀），序列不能断行。
    """

    site = "dilation"

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

    def process(self, event: DilationQuery) -> Decimal:
        return self.compute(event.altitude, event.reference_time)

    def compute(self, altitude: int, reference_time: Decimal) -> Decimal:
        ev = self.evaluator
        inner = self.precision.internal_scale
        R = self.physics.earth_radius
        rs = self.physics.schwarzschild_radius

        r_alt = ev.evaluate(lambda: ev.operand(R) + ev.operand(altitude), inner, label="R + altitude")
        if not r_alt.ok:
            return self._fallback(r_alt.error, reference_time)

        factor_surface = ev.evaluate(lambda: ev.sqrt(1 - ev.div(rs, R)), inner, label="sqrt(1 - Rs/R)")
        factor_altitude = ev.evaluate(
            lambda: ev.sqrt(1 - ev.div(rs, r_alt.value)), inner, label="sqrt(1 - Rs/r_alt)"
        )
        for res in (factor_surface, factor_altitude):
            if not res.ok:
                return self._fallback(res.error, reference_time)

        ratio = ev.evaluate(
            lambda: ev.div(factor_surface.value, factor_altitude.value), inner, label="f_s / f_a"
        )
        if not ratio.ok:
            return self._fallback(ratio.error, reference_time)

        dilated = ev.evaluate(
            lambda: ev.operand(reference_time) * ratio.value,
            self.precision.time_scale,
            label="reference_time * ratio",
        )
        if not dilated.ok:
            return self._fallback(dilated.error, reference_time)

        return dilated.value
