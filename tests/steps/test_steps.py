#!filepath: tests/steps/test_steps.py
import json
from datetime import datetime
from decimal import Decimal

import pytest

from qtdsim.analysis.analyzer import ResultsAnalyzer
from qtdsim.adapters.device_channel import SimulatedChannel
from qtdsim.engines.lorentz_engine import LorentzEngine
from qtdsim.pipeline.context import SimulationContext
from qtdsim.pipeline.pipeline import SimulationPipeline
from qtdsim.pipeline.step import PipelineStep
from qtdsim.simulation.driver import SimulationDriver
from qtdsim.steps.analysis_step import AnalysisStep
from qtdsim.steps.simulation_step import SimulationStep
from qtdsim.steps.velocity_sample_step import VelocitySampleStep
from qtdsim.storage.velocity_samples import load_velocity_samples


@pytest.fixture
def ctx(results_dir) -> SimulationContext:
    return SimulationContext(run_id="test", results_dir=results_dir, step=1000, max_altitude=3000)


def _driver():
    return SimulationDriver(channel=SimulatedChannel(), clock=lambda: datetime(2025, 5, 5, 5, 5, 5))


def test_simulation_step_fills_context(ctx):
    ctx = SimulationStep(_driver()).run(ctx)

    assert len(ctx.series) == 4
    assert ctx.output_file == ctx.series.path
    assert ctx.output_file.exists()


def test_analysis_step_writes_stats(ctx):
    ctx = SimulationStep(_driver()).run(ctx)
    ctx = AnalysisStep(ResultsAnalyzer()).run(ctx)

    assert ctx.statistics.count == 4
    assert len(ctx.projection) == 4

    stats_file = ctx.results_dir / "time_dilation_results_20250505_050505.stats.json"
    payload = json.loads(stats_file.read_text(encoding="utf-8"))
    assert payload["count"] == 4
    assert payload["completed"] is True
    assert payload["max"] == "0.00"
    assert payload["fallbacks"] == {}


def test_analysis_step_loads_series_from_file(ctx, write_series_csv, make_rows):
    ctx.output_file = write_series_csv(ctx.results_dir / "r.csv", make_rows(["10", "30"]))

    ctx = AnalysisStep(ResultsAnalyzer(), write_stats=False).run(ctx)

    assert ctx.series is not None
    assert ctx.statistics.mean == Decimal("20.00")
    assert not (ctx.results_dir / "r.stats.json").exists()


def test_velocity_sample_step(ctx):
    ctx = VelocitySampleStep(LorentzEngine(), samples=5, seed=7).run(ctx)

    assert len(ctx.velocity_samples) == 5
    for s in ctx.velocity_samples:
        assert Decimal("0.1") <= s.velocity <= Decimal("0.99")
        assert s.gamma >= 1
        assert s.velocity.as_tuple().exponent == -4
        assert s.gamma.as_tuple().exponent == -6

    assert load_velocity_samples(ctx.results_dir / "quantum_states.dat") == ctx.velocity_samples


def test_velocity_samples_seeded():
    a = VelocitySampleStep(LorentzEngine(), samples=3, seed=1).generate()
    b = VelocitySampleStep(LorentzEngine(), samples=3, seed=1).generate()
    assert a == b


class _AbortStep(PipelineStep):
    def run(self, ctx):
        ctx.abort_pipeline = True
        ctx.abort_reason = "stop here"
        return ctx


class _MarkStep(PipelineStep):
    def run(self, ctx):
        ctx.abort_reason = "should not run"
        return ctx


def test_pipeline_abort_skips_rest(results_dir):
    ctx = SimulationPipeline([_AbortStep(), _MarkStep()], results_dir=results_dir).run()

    assert ctx.abort_reason == "stop here"


def test_pipeline_runs_steps_in_order(results_dir):
    pipeline = SimulationPipeline(
        [SimulationStep(_driver()), AnalysisStep(ResultsAnalyzer())],
        results_dir=results_dir,
    )
    ctx = pipeline.run(step=10000, max_altitude=100000)

    assert len(ctx.series) == 11
    assert ctx.statistics.max == Decimal("0.00")
    assert ctx.run_id


def test_base_step_not_implemented(ctx):
    with pytest.raises(NotImplementedError):
        PipelineStep().run(ctx)
