# weatherdash/services/weather_service.py
from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from fastapi import Request

from weatherdash.clients.weather_clients import OpenWeatherClient
from weatherdash.core.errors import COORDS_REQUIRED_MESSAGE, ValidationError


class WeatherService:
    """当前天气 + 5 天预报，按城市名或经纬度查询"""

    def __init__(self, openweather_client: OpenWeatherClient) -> None:
        self.openweather_client = openweather_client

    @staticmethod
    def _normalize_city(city: str) -> str:
        return city.strip()

    @staticmethod
    def _require_coords(lat: Optional[str], lon: Optional[str]) -> Tuple[str, str]:
        # 空字符串也算缺失（?lat=&lon=10）
        if not lat or not lon:
            raise ValidationError(COORDS_REQUIRED_MESSAGE)
        return lat, lon

    async def weather_by_city(self, city: str) -> Dict[str, Any]:
        return await self.openweather_client.get_current_weather(q=self._normalize_city(city))

    async def weather_by_coords(self, lat: Optional[str], lon: Optional[str]) -> Dict[str, Any]:
        lat, lon = self._require_coords(lat, lon)
        return await self.openweather_client.get_current_weather(lat=lat, lon=lon)

    async def forecast_by_city(self, city: str) -> Dict[str, Any]:
        return await self.openweather_client.get_forecast(q=self._normalize_city(city))

    async def forecast_by_coords(self, lat: Optional[str], lon: Optional[str]) -> Dict[str, Any]:
        lat, lon = self._require_coords(lat, lon)
        return await self.openweather_client.get_forecast(lat=lat, lon=lon)


def get_weather_service(request: Request) -> WeatherService:
    http_client = request.app.state.http_client
    settings = request.app.state.settings
    return WeatherService(OpenWeatherClient.from_settings(http_client, settings))
