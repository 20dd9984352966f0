"""从预报数据里挑出各个面板要展示的部分"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List

from weatherdash.schemas.weather_schemas import ForecastEntry, ForecastSeries, WeatherSnapshot

HOURLY_SLOTS = 8  # 8 x 3h = 未来 24 小时
MIDDAY = "12:00:00"


@dataclass(frozen=True)
class DailyForecast:
    date: str  # "Aug 5"
    description: str
    icon: str
    high: int
    low: int


@dataclass(frozen=True)
class HourlyPoint:
    time: str  # "15:00"
    temp: int
    icon: str


def _entry_time(entry: ForecastEntry) -> datetime:
    if entry.dt_txt:
        return datetime.strptime(entry.dt_txt, "%Y-%m-%d %H:%M:%S")
    return datetime.fromtimestamp(entry.dt, tz=timezone.utc).replace(tzinfo=None)


def daily_forecast(series: ForecastSeries) -> List[DailyForecast]:
    """每天取中午 12 点那一条"""
    days = []
    for entry in series.entries:
        when = _entry_time(entry)
        if f"{when:%H:%M:%S}" != MIDDAY:
            continue
        condition = entry.weather[0]
        days.append(DailyForecast(
            date=f"{when:%b} {when.day}",
            description=condition.description,
            icon=condition.icon,
            high=round(entry.main.temp_max),
            low=round(entry.main.temp_min),
        ))
    return days


def hourly_forecast(series: ForecastSeries, slots: int = HOURLY_SLOTS) -> List[HourlyPoint]:
    return [
        HourlyPoint(
            time=f"{_entry_time(entry):%H:%M}",
            temp=round(entry.main.temp),
            icon=entry.weather[0].icon,
        )
        for entry in series.entries[:slots]
    ]


def visibility_km(snapshot: WeatherSnapshot) -> float:
    return round((snapshot.visibility or 0) / 1000, 1)
