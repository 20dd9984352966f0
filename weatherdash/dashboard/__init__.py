"""网关的 Python 消费端：取数编排、面板数据、本地搜索历史和主题偏好"""

from .client import ClientFetchError, GatewayClient
from .orchestrator import DashboardState, LoadStatus, WeatherDashboard
from .storage import LocalStore, SearchHistory, ThemePreference
from .views import DailyForecast, HourlyPoint, daily_forecast, hourly_forecast, visibility_km

__all__ = [
    "ClientFetchError",
    "GatewayClient",
    "DashboardState",
    "LoadStatus",
    "WeatherDashboard",
    "LocalStore",
    "SearchHistory",
    "ThemePreference",
    "DailyForecast",
    "HourlyPoint",
    "daily_forecast",
    "hourly_forecast",
    "visibility_km",
]
