"""
유효 시간이 있는 스냅샷 캐시

대회별 마지막 스냅샷을 보관. 유효 시간이 지난 항목은 없는 것으로 취급.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    value: T
    stored_at: datetime

    def age(self, now: datetime = None) -> timedelta:
        return (now or datetime.now()) - self.stored_at


class SnapshotCache(Generic[T]):

    def __init__(self, max_age_seconds: float = 30):
        self.max_age = timedelta(seconds=max_age_seconds)
        self._entries: Dict[Any, CacheEntry[T]] = {}

    def put(self, key, value: T, stored_at: datetime = None) -> T:
        """항목 교체"""
        self._entries[key] = CacheEntry(value, stored_at or datetime.now())
        return value

    def get(self, key, max_age: Optional[timedelta] = None, now: datetime = None) -> Optional[T]:
        """캐시 값 (없거나 만료되면 None)"""
        entry = self._entries.get(key)
        if entry is None:
            return None
        limit = self.max_age if max_age is None else max_age
        if entry.age(now) > limit:
            return None
        return entry.value

    def stored_at(self, key) -> Optional[datetime]:
        entry = self._entries.get(key)
        return entry.stored_at if entry else None

    def invalidate(self, key=None):
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def __contains__(self, key) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
