#!filepath: qtdsim/storage/series_csv.py
from __future__ import annotations

import csv
import re
from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pandas as pd

from qtdsim import logs
from qtdsim.core.precision import PrecisionEvaluator
from qtdsim.core.types import SimulationRecord, SimulationSeries
from qtdsim.utils.errors import EvaluationError, InputError, PersistenceError, SimulationError
from qtdsim.utils.filesystem import FileSystem

HEADER = (
    "Altitude(m)",
    "Earth_Time(s)",
    "Dilated_Time(s)",
    "Quantum_Time(s)",
    "Difference(ns)",
)

_STAMP = re.compile(r"(\d{8}_\d{6})")


def format_decimal(value: Decimal) -> str:
    """locale 无关、无指数的十进制字符串"""
    return format(value, "f")


def record_to_row(record: SimulationRecord) -> list[str]:
    return [
        str(record.altitude),
        format_decimal(record.earth_time),
        format_decimal(record.dilated_time),
        format_decimal(record.quantum_time),
        format_decimal(record.difference_ns),
    ]


class SeriesCsvWriter:
    """
    Series CSV 增量写入（逐行落盘）

    - open()   : 创建文件（独占，已存在则失败）并写 header
    - append() : 写一行后立即 flush + fsync，中断后已写部分始终可读
    - close()  : 关闭句柄，文件此后只读
    """

    def __init__(self, path: Path, fsync: bool = True):
        self.path = Path(path)
        self.fsync = fsync
        self.rows_written = 0
        self._fh = None
        self._writer = None

    def open(self) -> "SeriesCsvWriter":
        try:
            FileSystem.ensure_dir(self.path.parent)
            self._fh = open(self.path, "x", newline="", encoding="utf-8")
            self._writer = csv.writer(self._fh, lineterminator="\n")
            self._writer.writerow(HEADER)
            FileSystem.sync(self._fh, self.fsync)
        except OSError as e:
            self.close()
            raise PersistenceError(f"cannot create series file: {e}", path=self.path) from e

        logs.info(f"[SeriesCsv] created {self.path}")
        return self

    def append(self, index: int, record: SimulationRecord) -> None:
        if self._writer is None:
            raise PersistenceError("series file is not open", row_index=index, path=self.path)

        try:
            self._writer.writerow(record_to_row(record))
            FileSystem.sync(self._fh, self.fsync)
        except OSError as e:
            raise PersistenceError(f"cannot append row: {e}", row_index=index, path=self.path) from e

        self.rows_written += 1

    def close(self) -> None:
        if self._fh is not None and not self._fh.closed:
            self._fh.close()
        self._fh = None
        self._writer = None

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()


def _created_at(path: Path) -> datetime:
    m = _STAMP.search(path.name)
    if m:
        try:
            return datetime.strptime(m.group(1), "%Y%m%d_%H%M%S")
        except ValueError:
            pass
    return datetime.fromtimestamp(path.stat().st_mtime)


def read_series(path: Path, evaluator: PrecisionEvaluator | None = None) -> SimulationSeries:
    """
    读取已持久化的 series（只读，结果 series 已 finalize）

    - 文件不存在 / 空文件 / header 不符 → InputError
    - 某行无法解析 → PersistenceError(row_index)
    """
    path = Path(path)
    ev = evaluator or PrecisionEvaluator()

    if not path.exists():
        raise InputError(f"series file not found: {path}")
    if FileSystem.get_file_size(path) == 0:
        raise InputError(f"series file is empty: {path}")

    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    except (OSError, pd.errors.ParserError) as e:
        raise PersistenceError(f"cannot read series: {e}", path=path) from e

    if tuple(df.columns) != HEADER:
        raise InputError(f"unexpected series header in {path}: {','.join(df.columns)}")

    series = SimulationSeries(created_at=_created_at(path), path=path)

    for i, row in enumerate(df.itertuples(index=False, name=None)):
        try:
            altitude = ev.operand(row[0])
            if altitude != altitude.to_integral_value():
                raise EvaluationError("altitude is not an integer", row[0])
            record = SimulationRecord(
                altitude=int(altitude),
                earth_time=ev.operand(row[1]),
                dilated_time=ev.operand(row[2]),
                quantum_time=ev.operand(row[3]),
                difference_ns=ev.operand(row[4]),
            )
            series.append(record)
        except SimulationError as e:
            raise PersistenceError(f"malformed row: {e}", row_index=i, path=path) from e

    logs.debug(f"[SeriesCsv] loaded {len(series)} rows from {path}")
    return series.finalize(completed=True)
