"""Counter storage: Redis client wrapper + in-memory stand-in."""
import logging
import re
import threading

import redis

logger = logging.getLogger(__name__)

# what Redis INCR accepts as an integer
INT_RE = re.compile(r"-?[0-9]+")


class StoreError(Exception):
    def __init__(self, op: str, key: str | None = None, cause: Exception | None = None):
        self.op = op
        self.key = key
        self.cause = cause
        where = f"{op} {key}" if key is not None else op
        super().__init__(f"store {where} failed: {cause}" if cause else f"store {where} failed")


class StoreConnectionError(StoreError):
    """Store unreachable when connecting."""


class InvalidValueError(StoreError):
    """Stored value cannot be incremented as an integer."""


class RedisStore:
    """Thin wrapper around a pooled redis-py client.

    redis.Redis checks connections out of a thread-safe pool per command,
    so one instance can be shared by every request thread.
    """

    def __init__(self, host: str, port: int, socket_timeout: float | None = None, client=None):
        self.host = host
        self.port = port
        self._r = client or redis.Redis(
            host=host,
            port=port,
            socket_timeout=socket_timeout,
            decode_responses=True,
        )

    def connect(self) -> None:
        try:
            self._r.ping()
        except redis.RedisError as e:
            raise StoreConnectionError("connect", cause=e) from e
        logger.info("connected to redis at %s:%s", self.host, self.port)

    def ping(self) -> bool:
        try:
            return bool(self._r.ping())
        except redis.RedisError:
            return False

    def get(self, key: str):
        try:
            return self._r.get(key)
        except redis.RedisError as e:
            raise StoreError("get", key, e) from e

    def set(self, key: str, value: int) -> None:
        try:
            self._r.set(key, value)
        except redis.RedisError as e:
            raise StoreError("set", key, e) from e

    def incr(self, key: str) -> int:
        try:
            return int(self._r.incr(key))
        except redis.ResponseError as e:
            raise InvalidValueError("incr", key, e) from e
        except redis.RedisError as e:
            raise StoreError("incr", key, e) from e

    def close(self) -> None:
        self._r.close()


class MemoryStore:
    """Process-local store. State is lost on restart."""

    def __init__(self):
        self._data = {}
        self._lock = threading.Lock()

    def connect(self) -> None:
        pass

    def ping(self) -> bool:
        return True

    def get(self, key: str):
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: int) -> None:
        with self._lock:
            self._data[key] = str(value)

    def incr(self, key: str) -> int:
        with self._lock:
            raw = self._data.get(key, "0")
            if not INT_RE.fullmatch(raw):
                raise InvalidValueError("incr", key, ValueError(f"not an integer: {raw!r}"))
            v = int(raw) + 1
            self._data[key] = str(v)
            return v

    def close(self) -> None:
        pass
