#!filepath: qtdsim/utils/retry.py
import time
import random
from typing import Callable, Tuple, Type

from qtdsim import logs


class Retry:
    """
    同步重试工具，支持指数退避、日志记录和 jitter。
    （目前用于打开串口设备）
    """

    @staticmethod
    def run(
        func: Callable,
        *args,
        exceptions: Tuple[Type[Exception], ...] = (Exception,),
        max_attempts: int = 3,
        delay: float = 1.0,
        backoff: float = 2.0,
        jitter: bool = True,
        **kwargs,
    ):
        """
        手动调用版本的重试机制
        """
        attempt = 1
        while attempt <= max_attempts:

            try:
                return func(*args, **kwargs)

            except exceptions as e:
                if attempt == max_attempts:
                    logs.error(f"[Retry] {func.__name__} failed after {max_attempts} attempts")
                    raise

                wait = delay * (backoff ** (attempt - 1))
                if jitter:
                    wait = wait * random.uniform(0.8, 1.2)

                logs.warning(
                    f"[Retry] attempt {attempt}/{max_attempts} failed: {e}. "
                    f"retry in {wait:.2f}s"
                )
                time.sleep(wait)

                attempt += 1

