# qtdsim/utils/errors.py
from __future__ import annotations

from pathlib import Path


class SimulationError(RuntimeError):
    """qtdsim 所有业务异常的基类。"""


class InputError(SimulationError):
    """
    Raised for invalid user-provided config (step, max altitude, series file).
    Should NOT print traceback.
    """


class EvaluationError(SimulationError):
    """
    精度计算失败（除零 / 负数开方 / 非法操作数 / 计算后端不可用）。

    只在本地被 fallback 消化，不会中断仿真。
    """

    def __init__(self, reason: str, expression: str = ""):
        self.reason = reason
        self.expression = expression
        msg = f"{reason} ({expression})" if expression else reason
        super().__init__(msg)


class PersistenceError(SimulationError):
    """
    Series 读写失败。对当前 run 是致命的，已写入的行仍然有效。
    """

    def __init__(self, message: str, row_index: int | None = None, path: Path | None = None):
        self.row_index = row_index
        self.path = path
        where = []
        if row_index is not None:
            where.append(f"row={row_index}")
        if path is not None:
            where.append(f"path={path}")
        suffix = f" [{', '.join(where)}]" if where else ""
        super().__init__(f"{message}{suffix}")


class ChannelError(SimulationError):
    """设备通道读写失败（断开 / EPIPE / EIO），记录日志后继续仿真。"""


class ChannelTimeout(ChannelError):
    """设备通道在限定时间内没有应答（记录日志后继续仿真）。"""

    def __init__(self, timeout: float, device: str = ""):
        self.timeout = timeout
        self.device = device
        super().__init__(f"no response from {device or 'device'} within {timeout:.2f}s")
