#!filepath: qtdsim/pipeline/pipeline.py
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

from qtdsim import logs
from qtdsim.observability.instrumentation import Instrumentation
from qtdsim.pipeline.context import SimulationContext
from qtdsim.pipeline.step import PipelineStep
from qtdsim.utils.filesystem import FileSystem
from qtdsim.utils.path import PathManager


class SimulationPipeline:
    """
    SimulationPipeline = 调度器

    - 负责 orchestration（顺序 / 上下文）
    - 不负责任何 Step 级计时
    - 某个 Step 置 abort_pipeline 后，后续 Step 不再执行
    """

    def __init__(
        self,
        steps: list[PipelineStep],
        inst: Instrumentation | None = None,
        results_dir: Path | None = None,
    ):
        self.steps = steps
        self.inst = inst if inst is not None else Instrumentation()
        self.results_dir = results_dir

    def run(
        self,
        step: Optional[int] = None,
        max_altitude: Optional[int] = None,
        output_file: Optional[Path] = None,
    ) -> SimulationContext:
        run_id = datetime.now().strftime("%Y%m%d_%H%M%S")
        results_dir = FileSystem.ensure_dir(self.results_dir or PathManager.results_dir())

        logs.info(f"[Pipeline] ====== START {run_id} ======")

        ctx = SimulationContext(
            run_id=run_id,
            results_dir=results_dir,
            step=step,
            max_altitude=max_altitude,
            output_file=output_file,
        )

        for s in self.steps:
            if ctx.abort_pipeline:
                logs.warning(f"[Pipeline] abort before {s.step_name}: {ctx.abort_reason}")
                break
            ctx = s.run(ctx)

        self.inst.generate_timeline_report(run_id)
        logs.info(f"[Pipeline] ====== END {run_id} ======")
        return ctx
