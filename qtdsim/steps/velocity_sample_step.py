#!filepath: qtdsim/steps/velocity_sample_step.py
from __future__ import annotations

import random
from decimal import Decimal
from typing import List, Optional

from qtdsim import logs
from qtdsim.core.types import VelocitySample
from qtdsim.engines.lorentz_engine import LorentzEngine, VELOCITY_SCALE
from qtdsim.pipeline.context import SimulationContext
from qtdsim.pipeline.step import PipelineStep
from qtdsim.storage.velocity_samples import write_velocity_samples
from qtdsim.utils.path import PathManager

V_MIN = Decimal("0.1")
V_SPAN = Decimal("0.89")


class VelocitySampleStep(PipelineStep):
    """
    VelocitySampleStep

    随机速度 v ∈ [0.1c, 0.99c) → Lorentz gamma，写 quantum_states.dat
    """

    stage = "velocity_samples"

    def __init__(
        self,
        engine: LorentzEngine,
        samples: int = 20,
        seed: Optional[int] = None,
        inst=None,
    ):
        super().__init__(inst)
        self.engine = engine
        self.samples = samples
        self.rng = random.Random(seed)

    def generate(self) -> List[VelocitySample]:
        ev = self.engine.evaluator
        out = []
        for _ in range(self.samples):
            u = Decimal(repr(self.rng.random()))
            v = ev.evaluate(lambda: V_MIN + V_SPAN * u, VELOCITY_SCALE, rounding="ROUND_HALF_UP").or_else(V_MIN)
            out.append(self.engine.process(v))
        return out

    def run(self, ctx: SimulationContext) -> SimulationContext:
        with self.timed():
            samples = self.generate()

        path = PathManager.velocity_samples_file(ctx.results_dir)
        write_velocity_samples(path, samples)
        logs.info(f"[{self.step_name}] {len(samples)} samples → {path}")

        ctx.velocity_samples = samples
        return ctx
