#!filepath: qtdsim/steps/simulation_step.py
from __future__ import annotations

from qtdsim import logs
from qtdsim.pipeline.context import SimulationContext
from qtdsim.pipeline.step import PipelineStep
from qtdsim.simulation.driver import SimulationDriver


class SimulationStep(PipelineStep):
    """
    SimulationStep

    职责：
      - 调用 SimulationDriver 跑一次高度扫描
      - series → ctx.series
    """

    stage = "simulation"

    def __init__(self, driver: SimulationDriver, inst=None):
        super().__init__(inst)
        self.driver = driver

    def run(self, ctx: SimulationContext) -> SimulationContext:
        with self.timed():
            series = self.driver.run(
                ctx.step,
                ctx.max_altitude,
                output_path=ctx.output_file,
                results_dir=ctx.results_dir,
            )

        if not series.completed:
            logs.warning(f"[{self.step_name}] partial series: {len(series)} rows in {series.path}")

        ctx.series = series
        ctx.output_file = series.path
        return ctx
