#!filepath: qtdsim/steps/analysis_step.py
from __future__ import annotations

import json

from qtdsim import logs
from qtdsim.analysis.analyzer import ResultsAnalyzer
from qtdsim.pipeline.context import SimulationContext
from qtdsim.pipeline.step import PipelineStep
from qtdsim.utils.path import PathManager


class AnalysisStep(PipelineStep):
    """
    AnalysisStep

    职责：
      - series → Statistics + projection
      - 写 <series>.stats.json（series 本身只读）
      - ctx.series 为空时从 ctx.output_file / 最新结果文件加载
    """

    stage = "analysis"

    def __init__(self, analyzer: ResultsAnalyzer, inst=None, write_stats: bool = True):
        super().__init__(inst)
        self.analyzer = analyzer
        self.write_stats = write_stats

    def run(self, ctx: SimulationContext) -> SimulationContext:
        with self.timed():
            series = ctx.series
            if series is None:
                series = self.analyzer.load_series(ctx.output_file)
                ctx.series = series

            stats = self.analyzer.analyze(series)
            ctx.statistics = stats
            ctx.projection = self.analyzer.project(series)

        if self.write_stats and series.path is not None:
            out = PathManager.stats_file(series.path)
            payload = {
                **stats.to_dict(),
                "series": series.path.name,
                "completed": series.completed,
                "fallbacks": series.fallbacks,
                "channel_timeouts": series.channel_timeouts,
            }
            out.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            logs.info(f"[{self.step_name}] stats → {out}")

        return ctx
