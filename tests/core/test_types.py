#!filepath: tests/core/test_types.py
from datetime import datetime
from decimal import Decimal

import pytest

from qtdsim.core.types import SimulationRecord, SimulationSeries, Statistics
from qtdsim.utils.errors import PersistenceError, SimulationError


def _rec(alt):
    one = Decimal("1")
    return SimulationRecord(alt, one, one, one, Decimal("0.00"))


def test_series_append_only():
    s = SimulationSeries(created_at=datetime(2025, 1, 2, 3, 4, 5))
    s.append(_rec(0))
    s.append(_rec(1000))

    assert s.series_id == "20250102_030405"
    assert len(s) == 2

    with pytest.raises(SimulationError):
        s.append(_rec(1000))


def test_finalized_series_is_read_only():
    s = SimulationSeries(created_at=datetime.now())
    s.append(_rec(0))
    s.finalize(completed=False, fallbacks={"dilation": 2}, channel_timeouts=1)

    assert s.closed and not s.completed
    assert s.fallback_total == 2
    with pytest.raises(SimulationError):
        s.append(_rec(1000))


def test_statistics_to_dict():
    assert Statistics(Decimal("30.00"), Decimal("20.00"), 2).to_dict() == {
        "max": "30.00",
        "mean": "20.00",
        "count": 2,
    }


def test_persistence_error_message():
    e = PersistenceError("malformed row", row_index=4, path="r.csv")
    assert e.row_index == 4
    assert str(e) == "malformed row [row=4, path=r.csv]"
