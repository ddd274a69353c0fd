#!filepath: qtdsim/storage/velocity_samples.py
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List

from qtdsim.core.precision import PrecisionEvaluator
from qtdsim.core.types import VelocitySample
from qtdsim.storage.series_csv import format_decimal
from qtdsim.utils.errors import EvaluationError, InputError, PersistenceError
from qtdsim.utils.filesystem import FileSystem


def write_velocity_samples(path: Path, samples: Iterable[VelocitySample]) -> Path:
    """每行 velocity:gamma，整体覆盖写"""
    path = Path(path)
    FileSystem.ensure_dir(path.parent)
    lines = [f"{format_decimal(s.velocity)}:{format_decimal(s.gamma)}" for s in samples]
    try:
        path.write_text("\n".join(lines) + ("\n" if lines else ""), encoding="utf-8")
    except OSError as e:
        raise PersistenceError(f"cannot write velocity samples: {e}", path=path) from e
    return path


def load_velocity_samples(path: Path, evaluator: PrecisionEvaluator | None = None) -> List[VelocitySample]:
    path = Path(path)
    if not path.exists() or FileSystem.get_file_size(path) == 0:
        raise InputError(f"velocity samples not found or empty: {path}")

    ev = evaluator or PrecisionEvaluator()
    samples = []
    for i, line in enumerate(path.read_text(encoding="utf-8").splitlines()):
        if not line.strip():
            continue
        velocity, sep, gamma = line.partition(":")
        try:
            if not sep:
                raise EvaluationError("missing ':' separator", line)
            samples.append(VelocitySample(velocity=ev.operand(velocity), gamma=ev.operand(gamma)))
        except EvaluationError as e:
            raise PersistenceError(f"malformed sample: {e}", row_index=i, path=path) from e
    return samples
