#!filepath: qtdsim/analysis/analyzer.py
from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Iterable, List, Optional

from qtdsim import logs
from qtdsim.core.precision import PrecisionEvaluator
from qtdsim.core.types import ProjectionRow, SimulationRecord, SimulationSeries, Statistics
from qtdsim.storage.series_csv import read_series
from qtdsim.utils.errors import InputError
from qtdsim.utils.filesystem import FileSystem
from qtdsim.utils.path import PathManager

STAT_SCALE = 2
ZERO = Decimal("0.00")


class ResultsAnalyzer:
    """
    ResultsAnalyzer（只读）

    Statistics 与 projection 都是 series 的纯函数，不修改 series。
    """

    def __init__(
        self,
        evaluator: PrecisionEvaluator | None = None,
        scale_max: Decimal = Decimal("100"),
        bar_width: int = 50,
    ):
        self.evaluator = evaluator or PrecisionEvaluator()
        self.scale_max = Decimal(scale_max)
        self.bar_width = bar_width

    @classmethod
    def from_config(cls, cfg) -> "ResultsAnalyzer":
        return cls(
            evaluator=PrecisionEvaluator.from_config(cfg.precision),
            scale_max=cfg.report.scale_max,
            bar_width=cfg.report.bar_width,
        )

    # --------------------------------------------------
    # load
    # --------------------------------------------------
    @staticmethod
    def resolve_results_file(
        path: Path | str | None = None,
        results_dir: Path | str | None = None,
    ) -> Path:
        """
        未指定文件时取结果目录里最新的 time_dilation_results_*.csv
        """
        if path:
            return Path(path)

        directory = Path(results_dir) if results_dir else PathManager.results_dir()
        latest = FileSystem.latest_file(directory, PathManager.RESULTS_PATTERN)
        if latest is None:
            raise InputError(f"no results file found in {directory}, run a simulation first")
        return latest

    def load_series(self, path: Path | str | None = None) -> SimulationSeries:
        file = self.resolve_results_file(path)
        logs.info(f"[Analyzer] loading {file}")
        return read_series(file, evaluator=self.evaluator)

    # --------------------------------------------------
    # statistics
    # --------------------------------------------------
    def analyze(self, series: SimulationSeries | Iterable[SimulationRecord]) -> Statistics:
        """
        max / mean over difference_ns；空 series → 0.00 / 0.00
        """
        diffs = [r.difference_ns for r in series]
        if not diffs:
            return Statistics(max=ZERO, mean=ZERO, count=0)

        ev = self.evaluator
        max_diff = max(diffs)
        mean = ev.evaluate(
            lambda: sum(diffs, Decimal(0)) / len(diffs),
            STAT_SCALE,
            label="mean(difference_ns)",
            rounding="ROUND_HALF_UP",
        ).or_else(ZERO)

        stats = Statistics(
            max=ev.quantize(max_diff, STAT_SCALE, "ROUND_HALF_UP"),
            mean=mean,
            count=len(diffs),
        )
        logs.info(f"[Analyzer] max={stats.max} ns mean={stats.mean} ns rows={stats.count}")
        return stats

    # --------------------------------------------------
    # projection（外部 renderer 的唯一接口）
    # --------------------------------------------------
    def project(
        self,
        series: SimulationSeries | Iterable[SimulationRecord],
        scale_max: Optional[Decimal] = None,
        bar_width: Optional[int] = None,
    ) -> List[ProjectionRow]:
        """
        每行 → (altitude_km, 限幅到 [0, scale_max] 的差值, bar 长度)

            bar_length = floor(difference * bar_width / scale_max)
        """
        scale_max = Decimal(scale_max if scale_max is not None else self.scale_max)
        bar_width = bar_width if bar_width is not None else self.bar_width
        if scale_max <= 0 or bar_width <= 0:
            raise InputError(f"scale_max and bar_width must be positive, got {scale_max}, {bar_width}")

        ev = self.evaluator
        rows = []
        for r in series:
            clamped = self._clamp(r.difference_ns, scale_max)
            bar = ev.evaluate(
                lambda: ev.floor(clamped * bar_width / scale_max),
                0,
                label="bar length",
            ).or_else(Decimal(0))

            rows.append(
                ProjectionRow(
                    altitude_km=r.altitude // 1000,
                    difference=clamped,
                    bar_length=int(bar),
                )
            )
        return rows

    def _clamp(self, value: Decimal, upper: Decimal) -> Decimal:
        ev = self.evaluator
        if ev.compare(value, 0).or_else(Decimal(-1)) < 0:
            return ZERO
        if ev.compare(value, upper).or_else(Decimal(0)) > 0:
            return upper
        return value
