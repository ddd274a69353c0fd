#!filepath: qtdsim/simulation/driver.py
from __future__ import annotations

import time
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Callable, Optional

from qtdsim import logs
from qtdsim.adapters.device_channel import DeviceChannel, SimulatedChannel
from qtdsim.config.app_config import AppConfig
from qtdsim.config.physics_config import PhysicsConfig
from qtdsim.config.precision_config import PrecisionConfig
from qtdsim.config.simulation_config import SimulationConfig
from qtdsim.core.precision import PrecisionEvaluator
from qtdsim.core.types import SimulationRecord, SimulationSeries
from qtdsim.engines.dilation_engine import DilationEngine
from qtdsim.engines.quantum_engine import QuantumEngine
from qtdsim.observability.instrumentation import Instrumentation, NoOpInstrumentation
from qtdsim.observability.metrics import FallbackCounter
from qtdsim.storage.series_csv import SeriesCsvWriter
from qtdsim.utils.errors import ChannelError, InputError, PersistenceError
from qtdsim.utils.path import PathManager

NS_PER_SECOND = Decimal("1000000000")

StopCheck = Callable[[SimulationSeries], bool]


class SimulationDriver:
    """
    SimulationDriver（高度扫描主循环）

    每个 altitude step：
        earth_time    = base_time + reference_offset
        dilated_time  = DilationEngine(altitude, earth_time)
        quantum_time  = QuantumEngine(dilated_time)
        difference_ns = (dilated_time - earth_time) * 1e9
        → 通知设备通道 → 写一行 CSV（立即落盘）→ 追加到 series
        altitude += step, base_time += base_increment

    - 循环次数固定为 max_altitude // step + 1
    - 每行写完后检查 should_stop / KeyboardInterrupt，取消后 series 仍是合法前缀
    - 数值失败一律本地 fallback 并计数，不中断 run
    - PersistenceError 对本次 run 致命
    """

    def __init__(
        self,
        *,
        physics: PhysicsConfig | None = None,
        precision: PrecisionConfig | None = None,
        simulation: SimulationConfig | None = None,
        evaluator: PrecisionEvaluator | None = None,
        channel: DeviceChannel | None = None,
        device_command: str = "TIME_CALC",
        inst: Instrumentation | None = None,
        clock: Callable[[], datetime] = datetime.now,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.physics = physics or PhysicsConfig()
        self.precision = precision or PrecisionConfig()
        self.simulation = simulation or SimulationConfig()
        self.evaluator = evaluator or PrecisionEvaluator.from_config(self.precision)
        self.channel = channel if channel is not None else SimulatedChannel()
        self.device_command = device_command
        self.inst = inst if inst is not None else NoOpInstrumentation()
        self._clock = clock
        self._sleep = sleep

        # 最近一次 run 的 series（PersistenceError 时调用方仍可拿到已 finalize 的前缀）
        self.last_series: Optional[SimulationSeries] = None

    @classmethod
    def from_config(
        cls,
        cfg: AppConfig,
        *,
        channel: DeviceChannel | None = None,
        inst: Instrumentation | None = None,
        evaluator: PrecisionEvaluator | None = None,
    ) -> "SimulationDriver":
        return cls(
            physics=cfg.physics,
            precision=cfg.precision,
            simulation=cfg.simulation,
            evaluator=evaluator,
            channel=channel,
            device_command=cfg.device.command,
            inst=inst,
        )

    # --------------------------------------------------
    # entry
    # --------------------------------------------------
    def run(
        self,
        step: Optional[int] = None,
        max_altitude: Optional[int] = None,
        *,
        output_path: Path | str | None = None,
        results_dir: Path | str | None = None,
        should_stop: Optional[StopCheck] = None,
    ) -> SimulationSeries:
        step = self.simulation.step if step is None else step
        max_altitude = self.simulation.max_altitude if max_altitude is None else max_altitude
        self._validate(step, max_altitude)

        created_at = self._clock()
        path = self._output_path(created_at, output_path, results_dir)
        series = SimulationSeries(created_at=created_at, path=path)
        self.last_series = series

        counter = FallbackCounter()
        dilation = DilationEngine(self.physics, self.precision, self.evaluator, counter)
        quantum = QuantumEngine(self.physics, self.precision, self.evaluator, counter)

        total = max_altitude // step + 1
        timeouts = 0
        completed = False

        logs.info(
            f"[Simulation] start step={step} max_altitude={max_altitude} "
            f"rows={total} → {path}"
        )
        self.inst.progress.start("simulation", total, "rows")

        writer = SeriesCsvWriter(path, fsync=self.simulation.fsync_rows)
        record = None

        try:
            with self.inst.timer(f"simulation_{series.series_id}"), writer:
                altitude = 0
                base_time = Decimal(0)

                while altitude <= max_altitude:
                    record = self._compute_record(altitude, base_time, dilation, quantum, counter)
                    timeouts += self._notify_device(record)

                    writer.append(len(series), record)
                    series.append(record)

                    self.inst.progress.update("simulation", len(series), total, "rows")
                    logs.debug(
                        f"[Simulation] alt={record.altitude} m | earth={record.earth_time} s | "
                        f"dilated={record.dilated_time} s | diff={record.difference_ns} ns"
                    )

                    if should_stop is not None and should_stop(series):
                        logs.warning(f"[Simulation] cancelled after {len(series)}/{total} rows")
                        break

                    altitude += step
                    base_time = self._advance_base_time(base_time, counter)

                    if self.simulation.pause_seconds > 0 and altitude <= max_altitude:
                        self._sleep(self.simulation.pause_seconds)
                else:
                    completed = True

        except KeyboardInterrupt:
            if writer.rows_written > len(series):
                # 中断落在写盘与 append 之间：已落盘的行补进 series
                series.append(record)
            logs.warning(f"[Simulation] interrupted after {len(series)}/{total} rows")
        except PersistenceError as e:
            series.finalize(completed=False, fallbacks=counter.snapshot(), channel_timeouts=timeouts)
            logs.error(f"[Simulation] persistence failed: {e}")
            raise

        series.finalize(completed=completed, fallbacks=counter.snapshot(), channel_timeouts=timeouts)

        self.inst.progress.done("simulation")
        self.inst.metrics.record("fallbacks", counter.total)
        self.inst.metrics.record("channel_timeouts", timeouts)
        logs.info(
            f"[Simulation] finished rows={len(series)} completed={completed} "
            f"fallbacks={counter.total} timeouts={timeouts} file={path}"
        )
        return series

    # --------------------------------------------------
    # internals
    # --------------------------------------------------
    @staticmethod
    def _output_path(created_at, output_path, results_dir) -> Path:
        """
        显式 output_path 原样使用（已存在 → PersistenceError）；
        默认文件名同一秒内重复时追加 _1, _2 ...
        """
        if output_path:
            return Path(output_path)
        return PathManager.results_file(created_at, results_dir)

    @staticmethod
    def _validate(step, max_altitude) -> None:
        if isinstance(step, bool) or not isinstance(step, int) or step <= 0:
            raise InputError(f"step must be a positive integer, got {step!r}")
        if isinstance(max_altitude, bool) or not isinstance(max_altitude, int) or max_altitude < 0:
            raise InputError(f"max_altitude must be a non-negative integer, got {max_altitude!r}")

    def _compute_record(
        self,
        altitude: int,
        base_time: Decimal,
        dilation: DilationEngine,
        quantum: QuantumEngine,
        counter: FallbackCounter,
    ) -> SimulationRecord:
        ev = self.evaluator
        prec = self.precision
        offset = self.simulation.reference_offset

        earth = ev.evaluate(lambda: base_time + offset, prec.time_scale, label="base_time + offset")
        if not earth.ok:
            counter.hit("earth_time", earth.error.reason)
        earth_time = earth.or_else(offset)

        dilated_time = dilation.compute(altitude, earth_time)
        quantum_time = quantum.discretize(dilated_time)

        diff = ev.evaluate(
            lambda: (dilated_time - earth_time) * NS_PER_SECOND,
            prec.difference_scale,
            label="(dilated - earth) * 1e9",
        )
        if not diff.ok:
            counter.hit("difference", diff.error.reason)
        zero = Decimal(0).scaleb(-prec.difference_scale)
        difference_ns = diff.or_else(zero)

        if self.simulation.clamp_negative_difference and difference_ns < 0:
            difference_ns = zero

        return SimulationRecord(
            altitude=altitude,
            earth_time=earth_time,
            dilated_time=dilated_time,
            quantum_time=quantum_time,
            difference_ns=difference_ns,
        )

    def _advance_base_time(self, base_time: Decimal, counter: FallbackCounter) -> Decimal:
        increment = self.simulation.base_increment
        res = self.evaluator.evaluate(
            lambda: base_time + increment, self.precision.time_scale, label="base_time + increment"
        )
        if not res.ok:
            counter.hit("base_time", res.error.reason)
        return res.or_else(increment)

    def _notify_device(self, record: SimulationRecord) -> int:
        """返回本次设备失败次数（0 / 1），超时和读写错误都不中断 run"""
        try:
            response = self.channel.send(self.device_command, record.altitude, record.dilated_time)
        except ChannelError as e:
            logs.warning(f"[Simulation] device error at alt={record.altitude}: {e}")
            return 1

        logs.debug(f"[Simulation] device → {response}")
        return 0
