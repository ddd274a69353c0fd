#!filepath: qtdsim/observability/progress.py
from qtdsim import logs


class ProgressReporter:
    """
    最轻量进度系统（只写日志，不依赖 Rich/TQDM）
    """

    def __init__(self, enabled: bool = True, every: int = 10):
        self.enabled = enabled
        self.every = max(1, every)

    def start(self, task: str, total: int, unit: str = ""):
        if not self.enabled:
            return
        logs.info(f"[Progress] {task} started total={total} {unit}")

    def update(self, task: str, current: int, total: int, unit: str = ""):
        if not self.enabled:
            return
        if current % self.every and current != total:
            return
        logs.info(f"[Progress] {task}: {current}/{total} {unit}")

    def done(self, task: str):
        if not self.enabled:
            return
        logs.info(f"[Progress] {task} done")
