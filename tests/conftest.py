#!filepath: tests/conftest.py
from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest
from loguru import logger

from qtdsim.config import AppConfig
from qtdsim.core.precision import PrecisionEvaluator
from qtdsim.utils.path import PathManager


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)  # or sys.stderr
    yield


@pytest.fixture
def results_dir(tmp_path: Path, monkeypatch) -> Path:
    """
    结果目录隔离到 tmp_path，测试结束恢复
    """
    monkeypatch.delenv("QTD_RESULTS_DIR", raising=False)
    d = tmp_path / "results"
    d.mkdir()
    PathManager.set_results_dir(d)
    yield d
    PathManager.set_results_dir(None)


@pytest.fixture
def app_config(results_dir: Path, tmp_path: Path) -> AppConfig:
    """默认配置 + tmp 结果目录 + 模拟设备"""
    return AppConfig(
        log={"dir": str(tmp_path / "logs")},
        device={"mode": "simulation"},
        report={"results_dir": str(results_dir)},
    )


@pytest.fixture
def evaluator() -> PrecisionEvaluator:
    return PrecisionEvaluator()


@pytest.fixture
def write_series_csv():
    """
    直接写一个 series CSV（绕过 Driver），用于 analyzer / reader 测试
    """

    def _write(path: Path, rows, header: str | None = None) -> Path:
        header = header or "Altitude(m),Earth_Time(s),Dilated_Time(s),Quantum_Time(s),Difference(ns)"
        lines = [header] + [",".join(str(v) for v in r) for r in rows]
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_rows():
    """difference 列给定，其余列填合法值"""

    def _make(diffs, step: int = 1000):
        rows = []
        for i, d in enumerate(diffs):
            t = Decimal("1.0") + Decimal("0.1") * i
            rows.append((i * step, t, t, t, Decimal(str(d))))
        return rows

    return _make
