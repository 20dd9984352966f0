# weatherdash/dashboard/storage.py
"""客户端本地持久化（对应浏览器 localStorage）

一个 JSON 文件里存若干命名条目，值都是字符串：
- recentWeatherSearches：JSON 数组，最近搜索的城市
- weatherAppTheme："dark" / "light"
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

SEARCH_HISTORY_KEY = "recentWeatherSearches"
THEME_KEY = "weatherAppTheme"
MAX_RECENT_SEARCHES = 5


class LocalStore:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("本地存储文件损坏，按空处理: %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _dump(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp, self.path)

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._dump(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._dump(data)


class SearchHistory:
    """最近搜索：去重、最新的在前、最多 5 条、不自动过期"""

    def __init__(self, store: LocalStore, limit: int = MAX_RECENT_SEARCHES) -> None:
        self.store = store
        self.limit = limit

    def entries(self) -> List[str]:
        raw = self.store.get_item(SEARCH_HISTORY_KEY)
        if not raw:
            return []
        try:
            items = json.loads(raw)
        except ValueError:
            return []
        if not isinstance(items, list):
            return []
        return [str(x) for x in items][: self.limit]

    def add(self, city: str) -> List[str]:
        city = city.strip()
        if not city:
            return self.entries()
        items = [city] + [c for c in self.entries() if c != city]
        items = items[: self.limit]
        self.store.set_item(SEARCH_HISTORY_KEY, json.dumps(items, ensure_ascii=False))
        return items

    def clear(self) -> None:
        self.store.remove_item(SEARCH_HISTORY_KEY)


class ThemePreference:
    DARK = "dark"
    LIGHT = "light"

    def __init__(self, store: LocalStore, default: str = LIGHT) -> None:
        self.store = store
        self.default = default

    def get(self) -> str:
        value = self.store.get_item(THEME_KEY)
        return value if value in (self.DARK, self.LIGHT) else self.default

    @property
    def is_dark(self) -> bool:
        return self.get() == self.DARK

    def set(self, theme: str) -> None:
        if theme not in (self.DARK, self.LIGHT):
            raise ValueError(f"unknown theme: {theme!r}")
        self.store.set_item(THEME_KEY, theme)

    def toggle(self) -> str:
        theme = self.LIGHT if self.is_dark else self.DARK
        self.set(theme)
        return theme
