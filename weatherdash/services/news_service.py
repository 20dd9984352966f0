# weatherdash/services/news_service.py
"""天气新闻 / 预警数据源

前端只依赖 NewsSource 这两个方法；目前只有固定数据的 MockNewsSource，
接真实数据源时实现同样的接口，在 create_app(news_source=...) 里换掉即可。
"""
from __future__ import annotations

import asyncio
from typing import Protocol

from fastapi import Request

from weatherdash.schemas.news_schemas import AlertList, NewsArticle, NewsFeed, WeatherAlert


class NewsSource(Protocol):
    async def fetch_news(self) -> NewsFeed: ...

    async def fetch_alerts(self) -> AlertList: ...


MOCK_NEWS = [
    NewsArticle(
        id=1,
        title="Hurricane Season Expected to be More Active Than Normal",
        description=(
            "Meteorologists predict an above-average hurricane season this year, with warmer "
            "ocean temperatures contributing to more frequent and intense storms."
        ),
        imageUrl="https://images.unsplash.com/photo-1527482797697-8795b05a13fe?auto=format&fit=crop&w=1350&q=80",
        source="Weather Channel",
        date="August 5, 2025",
    ),
    NewsArticle(
        id=2,
        title="Record-Breaking Heat Wave Sweeps Across Europe",
        description=(
            "Several European countries are experiencing unprecedented high temperatures, with "
            "health officials issuing warnings about heat-related illnesses."
        ),
        imageUrl="https://images.unsplash.com/photo-1561647784-2f9c43b07a0b?auto=format&fit=crop&w=1350&q=80",
        source="Climate News",
        date="August 7, 2025",
    ),
    NewsArticle(
        id=3,
        title="New Climate Study Shows Accelerating Global Warming Trends",
        description=(
            "Recent research indicates that global temperatures are rising faster than previously "
            "predicted, highlighting the urgent need for climate action."
        ),
        imageUrl="https://images.unsplash.com/photo-1544069549-2f4cbf3bc362?auto=format&fit=crop&w=1350&q=80",
        source="Science Daily",
        date="July 28, 2025",
    ),
    NewsArticle(
        id=4,
        title="Innovative Weather Prediction Technology Unveiled",
        description=(
            "A new AI-powered system promises to improve weather forecasting accuracy by up to 30%, "
            "potentially saving lives during extreme weather events."
        ),
        imageUrl="https://images.unsplash.com/photo-1590055531615-690f6a2ee052?auto=format&fit=crop&w=1350&q=80",
        source="Tech Innovations",
        date="August 10, 2025",
    ),
]

MOCK_ALERTS = [
    WeatherAlert(
        id=1,
        title="Severe Thunderstorm Warning",
        description=(
            "Thunderstorms capable of producing damaging winds and large hail expected in the area. "
            "Seek shelter immediately if outdoors."
        ),
        area="Central District",
        severity="high",
        time="Valid until 8:00 PM",
        date="Today",
    ),
    WeatherAlert(
        id=2,
        title="Flash Flood Watch",
        description=(
            "Heavy rainfall may lead to flash flooding in low-lying areas. "
            "Avoid driving through flooded roadways."
        ),
        area="Eastern Region",
        severity="medium",
        time="Valid for next 12 hours",
        date="Today",
    ),
    WeatherAlert(
        id=3,
        title="Air Quality Advisory",
        description="Elevated levels of air pollution expected. Sensitive groups should limit outdoor activities.",
        area="Metropolitan Area",
        severity="low",
        time="Valid until tomorrow morning",
        date="Today",
    ),
]


class MockNewsSource:
    """固定数据 + 模拟网络延迟"""

    def __init__(self, delay_seconds: float = 1.0) -> None:
        self.delay_seconds = delay_seconds

    async def _simulate_latency(self) -> None:
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)

    async def fetch_news(self) -> NewsFeed:
        await self._simulate_latency()
        return NewsFeed(articles=[a.model_copy() for a in MOCK_NEWS])

    async def fetch_alerts(self) -> AlertList:
        await self._simulate_latency()
        return AlertList(alerts=[a.model_copy() for a in MOCK_ALERTS])


def get_news_source(request: Request) -> NewsSource:
    return request.app.state.news_source
