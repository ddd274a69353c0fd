#!filepath: tests/config/test_app_config.py
from decimal import Decimal

import pytest
import yaml
from pydantic import ValidationError

from qtdsim.config import AppConfig, DeviceMode, LogConfig, SimulationConfig


@pytest.fixture
def sample_config_file(tmp_path):
    """
    创建临时 YAML 配置文件用于测试，
    pytest 会自动清理该目录。
    """
    data = {
        "log": {"dir": "logs", "level": "DEBUG"},
        "simulation": {"step": 500, "max_altitude": 2000, "base_increment": "0.2"},
        "device": {"mode": "simulation", "timeout_seconds": 0.5},
    }
    config_file = tmp_path / "config.yaml"
    config_file.write_text(yaml.safe_dump(data), encoding="utf-8")
    return config_file


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("QTD_DEVICE", raising=False)
    monkeypatch.delenv("QTD_RESULTS_DIR", raising=False)


def test_default_config_loads():
    cfg = AppConfig.load()

    assert cfg.simulation.step == 1000
    assert cfg.simulation.max_altitude == 100000
    assert cfg.physics.time_quantum == Decimal("5.39e-44")
    assert cfg.precision.rounding == "ROUND_DOWN"
    assert cfg.device.mode == DeviceMode.AUTO


def test_app_config_load(sample_config_file):
    cfg = AppConfig.load(path=str(sample_config_file))

    assert isinstance(cfg.log, LogConfig)
    assert cfg.log.level == "DEBUG"
    assert cfg.simulation.step == 500
    assert cfg.simulation.base_increment == Decimal("0.2")
    # 未给出的 section 使用默认值
    assert cfg.physics.earth_radius == Decimal("6371000")
    assert cfg.device.timeout_seconds == 0.5


def test_env_overrides(sample_config_file, monkeypatch):
    monkeypatch.setenv("QTD_DEVICE", "/dev/ttyACM3")
    monkeypatch.setenv("QTD_RESULTS_DIR", "/tmp/qtd")

    cfg = AppConfig.load(path=str(sample_config_file))

    assert cfg.device.path == "/dev/ttyACM3"
    assert cfg.report.results_dir == "/tmp/qtd"


def test_missing_file():
    with pytest.raises(FileNotFoundError):
        AppConfig.load(path="/nonexistent/qtd.yml")


def test_empty_file_gives_defaults(tmp_path):
    p = tmp_path / "empty.yml"
    p.write_text("", encoding="utf-8")

    assert AppConfig.load(path=str(p)).simulation == SimulationConfig()


def test_invalid_value(tmp_path):
    p = tmp_path / "bad.yml"
    p.write_text(yaml.safe_dump({"precision": {"internal_scale": 5}}), encoding="utf-8")

    with pytest.raises(ValidationError):
        AppConfig.load(path=str(p))


def test_config_is_frozen():
    cfg = AppConfig()
    with pytest.raises(ValidationError):
        cfg.simulation.step = 1


def test_quick_variant():
    quick = SimulationConfig().quick()
    assert (quick.step, quick.max_altitude) == (10000, 100000)


def test_null_sections_with_env_overrides(tmp_path, monkeypatch):
    """`device:` / `report:` 写成空 section 时，env 覆盖仍然生效"""
    p = tmp_path / "null.yml"
    p.write_text("device:\nreport:\n", encoding="utf-8")
    monkeypatch.setenv("QTD_DEVICE", "/dev/ttyACM0")
    monkeypatch.setenv("QTD_RESULTS_DIR", str(tmp_path / "out"))

    cfg = AppConfig.load(path=str(p))

    assert cfg.device.path == "/dev/ttyACM0"
    assert cfg.device.baudrate == 115200
    assert cfg.report.results_dir == str(tmp_path / "out")
    assert cfg.report.bar_width == 50


def test_null_section_without_env_uses_defaults(tmp_path):
    p = tmp_path / "null.yml"
    p.write_text("device:\n", encoding="utf-8")

    assert AppConfig.load(path=str(p)).device.path == "/dev/ttyUSB0"
