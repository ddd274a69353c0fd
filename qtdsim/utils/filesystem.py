#!filepath: qtdsim/utils/filesystem.py
import os
from pathlib import Path
from typing import List, Optional

from qtdsim import logs


class FileSystem:
    """
    文件系统工具
    - 自动创建目录
    - 按模式扫描结果文件
    - 取最新结果文件（等价于 ls -t | head -1）
    - 追加行的落盘（flush + fsync）
    """

    @staticmethod
    def ensure_dir(path: str | Path) -> Path:
        """
        创建目录（如果不存在）
        """
        p = Path(path)
        if not p.exists():
            p.mkdir(parents=True, exist_ok=True)
            logs.debug(f"[FS] mkdir: {p}")
        return p

    @staticmethod
    def get_file_size(path: str | Path) -> int:
        p = Path(path)
        if not p.exists():
            return 0
        return p.stat().st_size

    @staticmethod
    def scan_dir(path: str | Path, pattern: str = "*") -> List[Path]:
        """
        返回目录下匹配 pattern 的文件（按文件名排序）
        """
        p = Path(path)
        if not p.exists():
            return []

        return sorted(f for f in p.glob(pattern) if f.is_file())

    @staticmethod
    def latest_file(path: str | Path, pattern: str) -> Optional[Path]:
        """
        最近修改的文件；没有匹配时返回 None
        """
        files = FileSystem.scan_dir(path, pattern)
        if not files:
            return None
        return max(files, key=lambda f: (f.stat().st_mtime, f.name))

    @staticmethod
    def sync(handle, fsync: bool = True) -> None:
        """
        把已写入的行推到磁盘，保证中断后已写部分可读
        """
        handle.flush()
        if fsync:
            os.fsync(handle.fileno())
