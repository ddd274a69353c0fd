#!filepath: tests/analysis/test_analyzer.py
import os
from datetime import datetime
from decimal import Decimal

import pytest

from qtdsim.analysis.analyzer import ResultsAnalyzer
from qtdsim.core.types import SimulationRecord, SimulationSeries
from qtdsim.utils.errors import InputError


def _series(diffs, step: int = 1000) -> SimulationSeries:
    s = SimulationSeries(created_at=datetime(2025, 1, 1))
    for i, d in enumerate(diffs):
        t = Decimal("1.0")
        s.append(SimulationRecord(i * step, t, t, t, Decimal(str(d))))
    return s.finalize()


def test_empty_series():
    stats = ResultsAnalyzer().analyze(_series([]))

    assert stats.max == Decimal("0.00")
    assert stats.mean == Decimal("0.00")
    assert stats.count == 0


def test_max_and_mean():
    stats = ResultsAnalyzer().analyze(_series(["10", "30"]))

    assert str(stats.max) == "30.00"
    assert str(stats.mean) == "20.00"
    assert stats.count == 2


def test_mean_rounds_half_up():
    stats = ResultsAnalyzer().analyze(_series(["0.01", "0.02"]))
    # 0.015 → 0.02
    assert stats.mean == Decimal("0.02")


def test_analyze_does_not_modify_series():
    s = _series(["1.00", "2.00"])
    before = list(s.records)

    analyzer = ResultsAnalyzer()
    analyzer.analyze(s)
    analyzer.project(s)

    assert s.records == before


def test_projection_clamp_and_bar():
    rows = ResultsAnalyzer().project(_series(["-5", "0", "50", "150", "99.99"], step=10000))

    assert [r.altitude_km for r in rows] == [0, 10, 20, 30, 40]
    assert [r.difference for r in rows] == [
        Decimal("0"),
        Decimal("0"),
        Decimal("50"),
        Decimal("100"),
        Decimal("99.99"),
    ]
    # floor(d * 50 / 100)
    assert [r.bar_length for r in rows] == [0, 0, 25, 50, 49]


def test_projection_custom_scale():
    rows = ResultsAnalyzer().project(_series(["3"]), scale_max=Decimal("10"), bar_width=20)
    assert rows[0].bar_length == 6


def test_projection_rejects_bad_scale():
    with pytest.raises(InputError):
        ResultsAnalyzer().project(_series(["1"]), scale_max=Decimal("0"))


def test_resolve_latest_results_file(results_dir):
    old = results_dir / "time_dilation_results_20250101_000000.csv"
    new = results_dir / "time_dilation_results_20250102_000000.csv"
    other = results_dir / "notes.csv"
    for p in (old, new, other):
        p.write_text("x", encoding="utf-8")
    os.utime(old, (1_000_000, 1_000_000))
    os.utime(new, (2_000_000, 2_000_000))
    os.utime(other, (3_000_000, 3_000_000))

    assert ResultsAnalyzer.resolve_results_file() == new
    assert ResultsAnalyzer.resolve_results_file(old) == old


def test_resolve_without_results(results_dir):
    with pytest.raises(InputError):
        ResultsAnalyzer.resolve_results_file()


def test_load_series_empty_file(results_dir):
    empty = results_dir / "time_dilation_results_20250101_000000.csv"
    empty.touch()

    with pytest.raises(InputError):
        ResultsAnalyzer().load_series()


def test_load_and_analyze(tmp_path, write_series_csv, make_rows):
    path = write_series_csv(tmp_path / "r.csv", make_rows(["10", "30"]))

    analyzer = ResultsAnalyzer()
    stats = analyzer.analyze(analyzer.load_series(path))

    assert (str(stats.max), str(stats.mean)) == ("30.00", "20.00")
