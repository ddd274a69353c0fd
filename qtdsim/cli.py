#!filepath: qtdsim/cli.py
from pathlib import Path
from typing import Optional

import typer
from rich import print
from rich.markup import escape
from rich.table import Table

from qtdsim import __version__, init_logging
from qtdsim.adapters.device_channel import open_channel, probe_channel
from qtdsim.config.app_config import AppConfig
from qtdsim.core.types import SimulationSeries, Statistics
from qtdsim.utils.errors import ChannelError, InputError, PersistenceError
from qtdsim.workflows.simulation_workflow import (
    analyze_results,
    generate_velocity_samples,
    run_quick_simulation,
    run_simulation,
)

app = typer.Typer(help="Quantum Time Dilation Simulator CLI")

ConfigOption = typer.Option(None, "--config", "-c", help="YAML 配置文件（默认 qtdsim/config/base.yml）")


def _load(config: Optional[Path]) -> AppConfig:
    try:
        cfg = AppConfig.load(str(config) if config else None)
    except FileNotFoundError as e:
        print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=2)
    init_logging(cfg.log)
    return cfg


def _fail(e: Exception, code: int) -> typer.Exit:
    print(f"[red]{type(e).__name__}: {escape(str(e))}[/red]")
    return typer.Exit(code=code)


def _print_summary(series: SimulationSeries, stats: Optional[Statistics]):
    state = "[green]completed[/green]" if series.completed else "[yellow]partial[/yellow]"
    print(f"{state} rows={len(series)} file={series.path}")
    if series.fallback_total or series.channel_timeouts:
        print(
            f"[yellow]fallbacks={series.fallbacks} "
            f"channel_timeouts={series.channel_timeouts}[/yellow]"
        )
    if stats is not None:
        print(f"max difference: {stats.max} ns | mean difference: {stats.mean} ns")


@app.command()
def version():
    print(f"v{__version__}")


@app.command()
def run(
    step: Optional[int] = typer.Option(None, help="高度步长（m）"),
    max_altitude: Optional[int] = typer.Option(None, help="最大高度（m）"),
    output: Optional[Path] = typer.Option(None, help="输出 CSV（必须不存在）"),
    config: Optional[Path] = ConfigOption,
):
    """
    运行完整高度扫描（Simulation → Analysis）
    """
    cfg = _load(config)
    print("[green]Running time dilation simulation[/green]")

    try:
        ctx = run_simulation(cfg, step=step, max_altitude=max_altitude, output_file=output)
    except InputError as e:
        raise _fail(e, 2)
    except PersistenceError as e:
        raise _fail(e, 1)

    _print_summary(ctx.series, ctx.statistics)


@app.command()
def quick(config: Optional[Path] = ConfigOption):
    """
    快速仿真：10 km 步长到 100 km
    """
    cfg = _load(config)
    print("[blue]Running quick simulation (10 km step)[/blue]")

    try:
        ctx = run_quick_simulation(cfg)
    except PersistenceError as e:
        raise _fail(e, 1)

    _print_summary(ctx.series, ctx.statistics)


@app.command()
def analyze(
    file: Optional[Path] = typer.Argument(None, help="结果 CSV（默认最新）"),
    config: Optional[Path] = ConfigOption,
):
    """
    分析已有结果：统计 + 高度/差值投影
    """
    cfg = _load(config)

    try:
        ctx = analyze_results(file, cfg)
    except InputError as e:
        raise _fail(e, 2)
    except PersistenceError as e:
        raise _fail(e, 1)

    table = Table(title=f"Time difference vs altitude ({ctx.series.path.name})")
    table.add_column("Altitude(km)", justify="right")
    table.add_column("Difference(ns)", justify="right")
    table.add_column("")
    for row in ctx.projection:
        table.add_row(str(row.altitude_km), format(row.difference, "f"), "█" * row.bar_length)

    print(table)
    print(f"max difference: {ctx.statistics.max} ns | mean difference: {ctx.statistics.mean} ns")


@app.command()
def probe(config: Optional[Path] = ConfigOption):
    """
    设备连接测试（TEST, 0, 1.0）
    """
    cfg = _load(config)

    try:
        with open_channel(cfg.device) as channel:
            response = probe_channel(channel)
    except ChannelError as e:
        raise _fail(e, 1)
    except OSError as e:
        raise _fail(e, 1)

    print(f"[green]{channel.mode.value}[/green] → {response}")


@app.command()
def velocities(
    samples: Optional[int] = typer.Option(None, help="样本数"),
    seed: Optional[int] = typer.Option(None, help="随机种子"),
    config: Optional[Path] = ConfigOption,
):
    """
    生成相对论速度样本（velocity:gamma → quantum_states.dat）
    """
    cfg = _load(config)

    try:
        ctx = generate_velocity_samples(cfg, samples=samples, seed=seed)
    except InputError as e:
        raise _fail(e, 2)

    for s in ctx.velocity_samples:
        print(f"v={s.velocity}c  gamma={s.gamma}")


if __name__ == "__main__":
    app()

# python -m qtdsim.cli quick
