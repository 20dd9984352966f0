# weatherdash/clients/weather_clients.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from weatherdash.core.config import Settings
from weatherdash.core.errors import DEFAULT_UPSTREAM_MESSAGE, UpstreamError

logger = logging.getLogger(__name__)


def _upstream_message(resp: httpx.Response) -> str:
    # OpenWeatherMap 的错误体：{"cod": "404", "message": "city not found"}
    try:
        body = resp.json()
    except ValueError:
        return DEFAULT_UPSTREAM_MESSAGE
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return DEFAULT_UPSTREAM_MESSAGE


class OpenWeatherClient:
    """
    OpenWeatherMap 2.5 接口的薄封装

    不重试、不缓存：上游的状态码和 message 原样抛成 UpstreamError，由网关透传。
    api key 只在这里拼进上游请求，不会出现在日志和响应里。
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        api_key: str,
        base_url: str = "https://api.openweathermap.org",
        units: str = "metric",
        lang: Optional[str] = None,
    ):
        self.http_client = http_client
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.units = units
        self.lang = lang

    @classmethod
    def from_settings(cls, http_client: httpx.AsyncClient, settings: Settings) -> "OpenWeatherClient":
        return cls(
            http_client,
            api_key=settings.openweather_api_key,
            base_url=settings.openweather_base_url,
            units=settings.openweather_units,
            lang=settings.openweather_lang,
        )

    async def get_current_weather(self, **location: Any) -> Dict[str, Any]:
        """location: q=城市名，或 lat=..., lon=..."""
        return await self._get("/data/2.5/weather", location)

    async def get_forecast(self, **location: Any) -> Dict[str, Any]:
        return await self._get("/data/2.5/forecast", location)

    async def _get(self, path: str, location: Dict[str, Any]) -> Dict[str, Any]:
        params = {**location, "appid": self.api_key, "units": self.units}
        if self.lang:
            params["lang"] = self.lang

        try:
            resp = await self.http_client.get(f"{self.base_url}{path}", params=params)
        except httpx.RequestError as e:
            # 连接失败 / 超时：上游没有状态码，按 500 处理
            logger.warning("OpenWeatherMap 请求失败 %s %s: %r", path, location, e)
            raise UpstreamError(DEFAULT_UPSTREAM_MESSAGE, status_code=500) from e

        if not resp.is_success:
            message = _upstream_message(resp)
            logger.info("OpenWeatherMap 返回 %s %s %s: %s", resp.status_code, path, location, message)
            raise UpstreamError(message, status_code=resp.status_code)

        try:
            return resp.json()
        except ValueError as e:
            logger.warning("OpenWeatherMap 返回了无法解析的 JSON %s %s", path, location)
            raise UpstreamError(DEFAULT_UPSTREAM_MESSAGE, status_code=500) from e
