# weatherdash/api/weather.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from weatherdash.schemas.weather_schemas import ErrorResponse, ForecastSeries, WeatherSnapshot
from weatherdash.services.weather_service import WeatherService, get_weather_service

router = APIRouter(prefix="/api", tags=["weather"])

# 上游 JSON 原样返回，不经过 response_model 过滤
_ERRORS = {
    400: {"model": ErrorResponse, "description": "缺少经纬度"},
    404: {"model": ErrorResponse, "description": "上游找不到城市"},
    429: {"model": ErrorResponse, "description": "超过限流"},
    500: {"model": ErrorResponse, "description": "上游不可达"},
}


def _doc(model):
    return {200: {"model": model}, **_ERRORS}


@router.get("/weather/city/{city}", responses=_doc(WeatherSnapshot))
async def weather_by_city(
    city: str,
    service: WeatherService = Depends(get_weather_service),
):
    return JSONResponse(await service.weather_by_city(city))


@router.get("/weather/coords", responses=_doc(WeatherSnapshot))
async def weather_by_coords(
    lat: Optional[str] = Query(None, description="纬度"),
    lon: Optional[str] = Query(None, description="经度"),
    service: WeatherService = Depends(get_weather_service),
):
    return JSONResponse(await service.weather_by_coords(lat, lon))


@router.get("/forecast/city/{city}", responses=_doc(ForecastSeries))
async def forecast_by_city(
    city: str,
    service: WeatherService = Depends(get_weather_service),
):
    return JSONResponse(await service.forecast_by_city(city))


@router.get("/forecast/coords", responses=_doc(ForecastSeries))
async def forecast_by_coords(
    lat: Optional[str] = Query(None, description="纬度"),
    lon: Optional[str] = Query(None, description="经度"),
    service: WeatherService = Depends(get_weather_service),
):
    return JSONResponse(await service.forecast_by_coords(lat, lon))
