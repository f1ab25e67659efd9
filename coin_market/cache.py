import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Hashable, Optional, TypeVar

V = TypeVar("V")


def now_millis() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    value: V
    fetched_at_millis: int


class TTLCache(Generic[V]):
    """
    按 key 保存 (值, 抓取时间) 的进程内缓存。

    过期只是逻辑上的：get 不再返回过期值，但条目保留，
    供抓取失败时通过 get_stale 降级使用。条目整体替换，不做原地修改。
    """

    def __init__(self, ttl_millis: int, clock: Optional[Callable[[], int]] = None) -> None:
        if ttl_millis < 0:
            raise ValueError("ttl_millis must be >= 0")
        self.ttl_millis = ttl_millis
        self._clock = clock or now_millis
        self._entries: Dict[Hashable, CacheEntry[V]] = {}

    def now(self) -> int:
        return self._clock()

    def get_entry(self, key: Hashable) -> Optional[CacheEntry[V]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.fetched_at_millis < self.ttl_millis:
            return entry
        return None

    def get_stale_entry(self, key: Hashable) -> Optional[CacheEntry[V]]:
        return self._entries.get(key)

    def get(self, key: Hashable) -> Optional[V]:
        entry = self.get_entry(key)
        return entry.value if entry is not None else None

    def get_stale(self, key: Hashable) -> Optional[V]:
        entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def put(self, key: Hashable, value: V) -> CacheEntry[V]:
        entry = CacheEntry(value, self._clock())
        self._entries[key] = entry
        return entry

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
