# weatherdash/dashboard/client.py
from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

DEFAULT_FETCH_ERROR = "Failed to fetch weather data"


class ClientFetchError(Exception):
    """网关不可达或返回非 2xx；message 直接展示给用户"""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class GatewayClient:
    """
    网关的 HTTP 客户端，http_client 需要配置好 base_url，例如：

        GatewayClient(httpx.AsyncClient(base_url="http://localhost:5000"))
    """

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self.http_client = http_client

    async def weather_by_city(self, city: str) -> Dict[str, Any]:
        return await self._get(f"/api/weather/city/{quote(city, safe='')}")

    async def weather_by_coords(self, lat: float, lon: float) -> Dict[str, Any]:
        return await self._get("/api/weather/coords", params={"lat": lat, "lon": lon})

    async def forecast_by_city(self, city: str) -> Dict[str, Any]:
        return await self._get(f"/api/forecast/city/{quote(city, safe='')}")

    async def forecast_by_coords(self, lat: float, lon: float) -> Dict[str, Any]:
        return await self._get("/api/forecast/coords", params={"lat": lat, "lon": lon})

    async def fetch_news(self) -> Dict[str, Any]:
        return await self._get("/api/news")

    async def fetch_alerts(self) -> Dict[str, Any]:
        return await self._get("/api/alerts")

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            resp = await self.http_client.get(path, params=params)
        except httpx.RequestError as e:
            raise ClientFetchError(DEFAULT_FETCH_ERROR) from e

        if not resp.is_success:
            message = DEFAULT_FETCH_ERROR
            try:
                body = resp.json()
                if isinstance(body, dict) and body.get("message"):
                    message = str(body["message"])
            except ValueError:
                pass
            raise ClientFetchError(message, status=resp.status_code)

        try:
            return resp.json()
        except ValueError as e:
            raise ClientFetchError(DEFAULT_FETCH_ERROR, status=resp.status_code) from e
