#!filepath: qtdsim/workflows/simulation_workflow.py
from __future__ import annotations

from pathlib import Path
from typing import Optional

from qtdsim import logs
from qtdsim.adapters.device_channel import DeviceChannel, open_channel
from qtdsim.analysis.analyzer import ResultsAnalyzer
from qtdsim.config.app_config import AppConfig
from qtdsim.engines.lorentz_engine import LorentzEngine
from qtdsim.core.precision import PrecisionEvaluator
from qtdsim.observability.instrumentation import Instrumentation
from qtdsim.pipeline.context import SimulationContext
from qtdsim.pipeline.pipeline import SimulationPipeline
from qtdsim.simulation.driver import SimulationDriver
from qtdsim.steps.analysis_step import AnalysisStep
from qtdsim.steps.simulation_step import SimulationStep
from qtdsim.steps.velocity_sample_step import VelocitySampleStep
from qtdsim.utils.path import PathManager


def _results_dir(cfg: AppConfig) -> Path:
    if cfg.report.results_dir:
        return Path(cfg.report.results_dir)
    return PathManager.results_dir()


def build_simulation_pipeline(
    cfg: AppConfig | None = None,
    channel: DeviceChannel | None = None,
    inst: Instrumentation | None = None,
) -> SimulationPipeline:
    """
    Simulation Pipeline

    Semantic Order:
        Simulation   (altitude sweep → CSV)
        → Analysis   (statistics + projection → .stats.json)
    """
    cfg = cfg or AppConfig.load()
    inst = inst if inst is not None else Instrumentation()
    channel = channel if channel is not None else open_channel(cfg.device)

    driver = SimulationDriver.from_config(cfg, channel=channel, inst=inst)

    return SimulationPipeline(
        steps=[
            SimulationStep(driver, inst=inst),
            AnalysisStep(ResultsAnalyzer.from_config(cfg), inst=inst),
        ],
        inst=inst,
        results_dir=_results_dir(cfg),
    )


@logs.catch(msg="simulation workflow failed")
def run_simulation(
    cfg: AppConfig | None = None,
    step: Optional[int] = None,
    max_altitude: Optional[int] = None,
    output_file: Optional[Path] = None,
    channel: DeviceChannel | None = None,
) -> SimulationContext:
    cfg = cfg or AppConfig.load()
    pipeline = build_simulation_pipeline(cfg, channel=channel)
    try:
        return pipeline.run(step=step, max_altitude=max_altitude, output_file=output_file)
    finally:
        if channel is None:
            # 由 build_simulation_pipeline 打开的通道在这里关闭
            pipeline.steps[0].driver.channel.close()


def run_quick_simulation(
    cfg: AppConfig | None = None,
    channel: DeviceChannel | None = None,
) -> SimulationContext:
    """快速仿真：10 km 步长到 100 km"""
    cfg = cfg or AppConfig.load()
    quick = cfg.simulation.quick()
    return run_simulation(
        cfg,
        step=quick.step,
        max_altitude=quick.max_altitude,
        channel=channel,
    )


def analyze_results(
    path: Path | str | None = None,
    cfg: AppConfig | None = None,
    write_stats: bool = False,
) -> SimulationContext:
    """
    只读分析已有结果（不跑仿真）；path 为空时取最新结果文件
    """
    cfg = cfg or AppConfig.load()
    analyzer = ResultsAnalyzer.from_config(cfg)
    results_dir = _results_dir(cfg)
    file = analyzer.resolve_results_file(path, results_dir)

    pipeline = SimulationPipeline(
        steps=[AnalysisStep(analyzer, write_stats=write_stats)],
        inst=Instrumentation(enabled=False),
        results_dir=results_dir,
    )
    return pipeline.run(output_file=file)


def generate_velocity_samples(
    cfg: AppConfig | None = None,
    samples: Optional[int] = None,
    seed: Optional[int] = None,
) -> SimulationContext:
    cfg = cfg or AppConfig.load()
    engine = LorentzEngine(evaluator=PrecisionEvaluator.from_config(cfg.precision))

    step = VelocitySampleStep(
        engine,
        samples=samples if samples is not None else cfg.report.samples,
        seed=seed if seed is not None else cfg.report.seed,
    )
    pipeline = SimulationPipeline(
        steps=[step],
        inst=Instrumentation(enabled=False),
        results_dir=_results_dir(cfg),
    )
    return pipeline.run()
