from __future__ import annotations

from threading import Lock
from time import monotonic
from typing import Callable, Generic, TypeVar

T = TypeVar("T")


class ShortTTLCache(Generic[T]):
    """
    进程内短缓存（公开页面数据：最新一期 / 归档 / 编委 / 期刊信息）。

    中文注释:
    - 仅当前 worker 内生效；编辑修改后通过 revalidate 接口或写路由主动失效。
    - 超过 max_entries 时先清理过期项，再按插入顺序淘汰。
    """

    def __init__(self, *, max_entries: int = 128) -> None:
        self._max_entries = max(8, int(max_entries or 128))
        self._store: dict[str, tuple[float, T]] = {}
        self._lock = Lock()

    def get(self, key: str) -> T | None:
        now = monotonic()
        with self._lock:
            row = self._store.get(key)
            if row is None:
                return None
            expires_at, value = row
            if expires_at <= now:
                self._store.pop(key, None)
                return None
            return value

    def set(self, key: str, value: T, *, ttl_sec: float) -> None:
        ttl = float(ttl_sec or 0)
        if ttl <= 0:
            return
        with self._lock:
            if key not in self._store and len(self._store) >= self._max_entries:
                now = monotonic()
                for k in [k for k, (exp, _) in self._store.items() if exp <= now]:
                    self._store.pop(k, None)
                while len(self._store) >= self._max_entries:
                    self._store.pop(next(iter(self._store)), None)
            self._store[key] = (monotonic() + ttl, value)

    def get_or_set(self, key: str, loader: Callable[[], T], *, ttl_sec: float) -> T:
        cached = self.get(key)
        if cached is not None:
            return cached
        value = loader()
        if value is not None:
            self.set(key, value, ttl_sec=ttl_sec)
        return value

    def invalidate(self, prefix: str = "") -> int:
        with self._lock:
            keys = [k for k in self._store if k.startswith(prefix)]
            for k in keys:
                self._store.pop(k, None)
            return len(keys)


# 公开接口共享缓存
public_cache: ShortTTLCache = ShortTTLCache()
