# weatherdash/schemas/weather_schemas.py
"""OpenWeatherMap 响应的顶层结构

网关对上游 JSON 不做任何改写，这里的模型只用来：
- 生成 OpenAPI 文档
- 让 dashboard 端按字段读取数据

所以全部 extra="allow"，上游多出来的字段不会丢。
"""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Upstream(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class Coord(_Upstream):
    lat: float
    lon: float


class WeatherCondition(_Upstream):
    id: Optional[int] = None
    main: Optional[str] = None
    description: str
    icon: str


class MainReadings(_Upstream):
    temp: float
    feels_like: float
    temp_min: float
    temp_max: float
    pressure: float
    humidity: float


class Wind(_Upstream):
    speed: float
    deg: Optional[float] = None
    gust: Optional[float] = None


class Clouds(_Upstream):
    all: int


class SysInfo(_Upstream):
    country: Optional[str] = None
    sunrise: Optional[int] = None
    sunset: Optional[int] = None


class WeatherSnapshot(_Upstream):
    """/data/2.5/weather"""
    name: str
    weather: List[WeatherCondition]
    main: MainReadings
    wind: Wind
    sys: SysInfo
    visibility: Optional[int] = None  # 米
    clouds: Optional[Clouds] = None
    coord: Optional[Coord] = None
    dt: Optional[int] = None
    timezone: Optional[int] = None  # 相对 UTC 的秒数


class ForecastEntry(_Upstream):
    dt: int
    main: MainReadings
    weather: List[WeatherCondition]
    wind: Optional[Wind] = None
    clouds: Optional[Clouds] = None
    visibility: Optional[int] = None
    pop: Optional[float] = None  # 降水概率 0~1
    dt_txt: Optional[str] = None  # "2025-08-05 12:00:00"（UTC）


class ForecastCity(_Upstream):
    name: str
    country: Optional[str] = None
    coord: Optional[Coord] = None
    timezone: Optional[int] = None
    sunrise: Optional[int] = None
    sunset: Optional[int] = None


class ForecastSeries(_Upstream):
    """/data/2.5/forecast：5 天、每 3 小时一条"""
    cnt: Optional[int] = None
    entries: List[ForecastEntry] = Field(alias="list")
    city: ForecastCity


class ErrorResponse(BaseModel):
    message: str
