# weatherdash/services/__init__.py
"""服务层模块"""

from .weather_service import WeatherService
from .news_service import MockNewsSource, NewsSource

__all__ = ["WeatherService", "MockNewsSource", "NewsSource"]
