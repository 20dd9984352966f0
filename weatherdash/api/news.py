from __future__ import annotations

from fastapi import APIRouter, Depends

from weatherdash.schemas.news_schemas import AlertList, NewsFeed
from weatherdash.services.news_service import NewsSource, get_news_source

router = APIRouter(prefix="/api", tags=["news"])


@router.get("/news", response_model=NewsFeed)
async def news(source: NewsSource = Depends(get_news_source)) -> NewsFeed:
    return await source.fetch_news()


@router.get("/alerts", response_model=AlertList)
async def alerts(source: NewsSource = Depends(get_news_source)) -> AlertList:
    return await source.fetch_alerts()
