"""
kv.py

Refresh 세션 / 토큰 블랙리스트를 담는 빠른 Key-Value 저장소.

구현체:
- RedisStore     : redis-py 클라이언트 래퍼 (운영)
- InMemoryStore  : 프로세스 내 dict + TTL (Redis 미사용 / 비운영 환경 fallback)

구현체 선택은 기동 시 create_store()에서 한 번만 일어나며,
이후 호출마다 바뀌지 않는다.

- REDIS_DISABLED=true          -> InMemoryStore
- Redis 연결 실패 + 비운영 환경 -> 경고 로그 후 InMemoryStore
- Redis 연결 실패 + production -> 예외 전파 (기동 중단)

관련 파일:
- gogostudy.services.tokens  : 세션 / 블랙리스트 키 사용
- gogostudy.main             : lifespan에서 create_store 호출

"""

import logging
import threading
import time
from typing import Protocol

import redis

from gogostudy.core.config import Settings

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None: ...

    def delete(self, key: str) -> int: ...

    def exists(self, key: str) -> bool: ...

    def flush(self) -> None: ...

    def close(self) -> None: ...


class RedisStore:
    def __init__(self, client: redis.Redis):
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisStore":
        return cls(redis.Redis.from_url(url, decode_responses=True))

    def ping(self) -> None:
        self._client.ping()

    def get(self, key: str) -> str | None:
        return self._client.get(key)

    def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        self._client.set(key, value, ex=ttl_seconds)

    def delete(self, key: str) -> int:
        return int(self._client.delete(key))

    def exists(self, key: str) -> bool:
        return bool(self._client.exists(key))

    def flush(self) -> None:
        self._client.flushdb()

    def close(self) -> None:
        self._client.close()


class InMemoryStore:
    """dict 기반 저장소. 만료된 키는 조회 시점에 제거한다."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._data: dict[str, tuple[str, float | None]] = {}
        self._lock = threading.Lock()

    def _live(self, key: str) -> tuple[str, float | None] | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and expires_at <= self._clock():
            del self._data[key]
            return None
        return entry

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._live(key)
            return entry[0] if entry else None

    def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        expires_at = self._clock() + ttl_seconds if ttl_seconds is not None else None
        with self._lock:
            self._data[key] = (value, expires_at)

    def delete(self, key: str) -> int:
        with self._lock:
            return 1 if self._data.pop(key, None) is not None else 0

    def exists(self, key: str) -> bool:
        with self._lock:
            return self._live(key) is not None

    def flush(self) -> None:
        with self._lock:
            self._data.clear()

    def close(self) -> None:
        self.flush()


def create_store(settings: Settings) -> KeyValueStore:
    if settings.REDIS_DISABLED:
        logger.info("Redis disabled; using in-memory session store")
        return InMemoryStore()

    store = RedisStore.from_url(settings.REDIS_URL)
    try:
        store.ping()
    except redis.RedisError:
        if settings.is_production:
            raise
        logger.warning("Redis unavailable; using in-memory session store for non-production")
        return InMemoryStore()
    return store
