# weatherdash/dashboard/orchestrator.py
"""前端的取数编排

每次用户操作（搜索城市 / 定位 / 地图点击）并发请求 "当前天气 + 预报" 一对接口：
- 两个都成功才更新展示数据，任意一个失败只报一个错误，不做部分更新
- 每一对请求带递增的 request id，只有最新一次的结果会被采用，
  慢的旧请求晚回来也不会覆盖新数据
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional

from pydantic import ValidationError

from weatherdash.dashboard.client import DEFAULT_FETCH_ERROR, ClientFetchError, GatewayClient
from weatherdash.dashboard.storage import SearchHistory
from weatherdash.dashboard.views import DailyForecast, HourlyPoint, daily_forecast, hourly_forecast, visibility_km
from weatherdash.schemas.weather_schemas import ForecastSeries, WeatherSnapshot

logger = logging.getLogger(__name__)

EMPTY_CITY_WARNING = "Please enter a city name"


class LoadStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """对应前端的 toast"""
    level: str  # success / error / warning / info
    text: str


@dataclass
class DashboardState:
    status: LoadStatus = LoadStatus.IDLE
    weather: Optional[WeatherSnapshot] = None
    forecast: Optional[ForecastSeries] = None
    error: Optional[str] = None
    request_id: int = 0

    # 各个面板直接读这几个属性；还没有数据时为空
    @property
    def daily(self) -> List[DailyForecast]:
        return daily_forecast(self.forecast) if self.forecast is not None else []

    @property
    def hourly(self) -> List[HourlyPoint]:
        return hourly_forecast(self.forecast) if self.forecast is not None else []

    @property
    def visibility_km(self) -> Optional[float]:
        return visibility_km(self.weather) if self.weather is not None else None


Fetch = Callable[[], Awaitable[Any]]


class WeatherDashboard:
    def __init__(self, client: GatewayClient, history: Optional[SearchHistory] = None) -> None:
        self.client = client
        self.history = history
        self.state = DashboardState()
        self.notifications: List[Notification] = []
        self._latest_request_id = 0

    def _notify(self, level: str, text: str) -> None:
        self.notifications.append(Notification(level, text))

    async def search_city(self, city: str) -> DashboardState:
        city = city.strip()
        if not city:
            self._notify("warning", EMPTY_CITY_WARNING)
            return self.state

        # 提交即记入搜索历史，不管请求结果
        if self.history is not None:
            self.history.add(city)

        return await self._load_pair(
            lambda: self.client.weather_by_city(city),
            lambda: self.client.forecast_by_city(city),
            success_text=f"Weather data loaded for {city}",
        )

    async def search_coords(self, lat: float, lon: float) -> DashboardState:
        """定位和地图点击都走这里"""
        return await self._load_pair(
            lambda: self.client.weather_by_coords(lat, lon),
            lambda: self.client.forecast_by_coords(lat, lon),
            success_text="Weather data loaded for your location",
        )

    def _is_stale(self, request_id: int) -> bool:
        return request_id != self._latest_request_id

    async def _load_pair(self, fetch_weather: Fetch, fetch_forecast: Fetch, *, success_text: str) -> DashboardState:
        self._latest_request_id += 1
        request_id = self._latest_request_id

        self.state.status = LoadStatus.LOADING
        self.state.error = None
        self.state.request_id = request_id

        weather_raw, forecast_raw = await asyncio.gather(
            fetch_weather(), fetch_forecast(), return_exceptions=True
        )

        if self._is_stale(request_id):
            logger.debug("丢弃过期的请求结果 #%s（最新 #%s）", request_id, self._latest_request_id)
            return self.state

        failure = next((r for r in (weather_raw, forecast_raw) if isinstance(r, BaseException)), None)
        if failure is not None:
            if not isinstance(failure, ClientFetchError):
                # 先把界面切到错误状态，再把异常抛给调用方，不能一直停在 loading
                self._fail(DEFAULT_FETCH_ERROR)
                raise failure
            return self._fail(failure.message)

        try:
            weather = WeatherSnapshot.model_validate(weather_raw)
            forecast = ForecastSeries.model_validate(forecast_raw)
        except ValidationError:
            logger.warning("网关返回的数据结构不符合预期", exc_info=True)
            return self._fail(DEFAULT_FETCH_ERROR)

        self.state.weather = weather
        self.state.forecast = forecast
        self.state.status = LoadStatus.SUCCESS
        self._notify("success", success_text)
        return self.state

    def _fail(self, message: str) -> DashboardState:
        # 只改错误状态，保留上一次成功的展示数据
        self.state.status = LoadStatus.ERROR
        self.state.error = message
        self._notify("error", message)
        return self.state

    def location_unavailable(self, supported: bool = True) -> DashboardState:
        """浏览器拿不到定位时前端直接报错，不发请求"""
        message = "Unable to get your location" if supported else "Geolocation is not supported by this browser"
        return self._fail(message)
