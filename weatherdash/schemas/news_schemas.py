from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel


class NewsArticle(BaseModel):
    id: int
    title: str
    description: str
    imageUrl: str
    source: str
    date: str


class WeatherAlert(BaseModel):
    id: int
    title: str
    description: str
    area: str
    severity: Literal["high", "medium", "low"]
    time: str
    date: str


class NewsFeed(BaseModel):
    articles: List[NewsArticle]


class AlertList(BaseModel):
    alerts: List[WeatherAlert]
