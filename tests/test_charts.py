from __future__ import annotations

from raincheck.charts import hour_label, rain_chart
from raincheck.schemas import HourlyForecast


def test_hour_label() -> None:
    assert hour_label("2025-06-01T00:00") == "0:00"
    assert hour_label("2025-06-01T14:00") == "14:00"
    assert hour_label("soon") == "soon"


def test_rain_chart_geometry(snapshot) -> None:
    bars = rain_chart(snapshot.hourly)

    assert len(bars) == 24
    assert [b.label for b in bars[:3]] == ["0:00", "1:00", "2:00"]
    assert [b.show_label for b in bars[:5]] == [True, False, False, False, True]
    assert bars[0].probability == 5
    assert bars[0].height == 5.0
    assert bars[-1].height == 90.0
    assert bars[1].x > bars[0].x


def test_rain_chart_empty() -> None:
    assert rain_chart(HourlyForecast()) == []
