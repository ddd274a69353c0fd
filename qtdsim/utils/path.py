#!filepath: qtdsim/utils/path.py
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from qtdsim import logs


class PathManager:
    """
    项目目录结构：

    <root>
     ├── qtdsim/
     │     └── config/base.yml
     ├── results/
     │     ├── time_dilation_results_YYYYmmdd_HHMMSS.csv
     │     └── quantum_states.dat
     └── logs/

    root 默认为 qtdsim 包的上一级目录，可用 set_root() 或
    QTD_RESULTS_DIR 环境变量改变结果目录。
    """

    RESULTS_PREFIX = "time_dilation_results_"
    RESULTS_PATTERN = "time_dilation_results_*.csv"
    VELOCITY_SAMPLES = "quantum_states.dat"

    _root: Optional[Path] = None
    _results_dir: Optional[Path] = None

    # ---------------------------------------------------------
    # root detection
    # ---------------------------------------------------------
    @classmethod
    def detect_root(cls) -> Path:
        """
        当前文件位于 <root>/qtdsim/utils/path.py
        因此 root = parents[2]
        """
        root = Path(__file__).resolve().parents[2]
        logs.debug(f"[PathManager] detect_root = {root}")
        return root

    @classmethod
    def root(cls) -> Path:
        if cls._root is None:
            cls._root = cls.detect_root()
        return cls._root

    @classmethod
    def set_root(cls, new_root: Path | str | None):
        if new_root is None:
            cls._root = None
        else:
            cls._root = Path(new_root).resolve()
        logs.debug(f"[PathManager] set_root = {cls._root}")

    @classmethod
    def set_results_dir(cls, results_dir: Path | str | None):
        cls._results_dir = Path(results_dir) if results_dir else None

    # ---------------------------------------------------------
    # dirs
    # ---------------------------------------------------------
    @classmethod
    def results_dir(cls) -> Path:
        if cls._results_dir is not None:
            return cls._results_dir

        env = os.getenv("QTD_RESULTS_DIR")
        if env:
            return Path(env)

        return cls.root() / "results"

    # ---------------------------------------------------------
    # files
    # ---------------------------------------------------------
    @classmethod
    def results_file(cls, created_at: datetime, directory: Path | str | None = None) -> Path:
        """
        time_dilation_results_<stamp>.csv；同一秒内已存在则依次尝试 _1, _2 ...
        """
        directory = Path(directory) if directory else cls.results_dir()
        stamp = created_at.strftime("%Y%m%d_%H%M%S")

        path = directory / f"{cls.RESULTS_PREFIX}{stamp}.csv"
        n = 0
        while path.exists():
            n += 1
            path = directory / f"{cls.RESULTS_PREFIX}{stamp}_{n}.csv"
        return path

    @classmethod
    def stats_file(cls, results_file: Path) -> Path:
        return results_file.with_suffix(".stats.json")

    @classmethod
    def velocity_samples_file(cls, directory: Path | str | None = None) -> Path:
        return (Path(directory) if directory else cls.results_dir()) / cls.VELOCITY_SAMPLES
