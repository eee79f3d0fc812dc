"""
Rain chart data for the dashboard template.

The template draws an SVG bar per hour; this module only works out labels
and geometry so the template stays dumb.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List

from .schemas import HourlyForecast

# Label every 4th hour to keep the axis readable on a phone.
LABEL_EVERY = 4


@dataclass(frozen=True)
class ChartBar:
    label: str
    probability: int
    x: float
    width: float
    height: float
    show_label: bool


def hour_label(timestamp: str) -> str:
    """'2025-06-01T14:00' -> '14:00'. Unparseable stamps are shown as-is."""
    try:
        return f"{datetime.fromisoformat(timestamp).hour}:00"
    except ValueError:
        return timestamp


def rain_chart(hourly: HourlyForecast, width: float = 100.0, height: float = 100.0) -> List[ChartBar]:
    """One bar per hour; bar height is the rain chance scaled to `height` (0-100%)."""
    count = len(hourly.timestamps)
    if not count:
        return []

    slot = width / count
    bars = []
    for i, (stamp, prob) in enumerate(zip(hourly.timestamps, hourly.precipitation_probability_pct)):
        clamped = max(0, min(100, prob))
        bars.append(ChartBar(
            label=hour_label(stamp),
            probability=prob,
            x=round(i * slot, 3),
            width=round(slot * 0.8, 3),
            height=round(clamped / 100 * height, 3),
            show_label=i % LABEL_EVERY == 0,
        ))
    return bars
