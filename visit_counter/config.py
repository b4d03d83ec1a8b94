import logging
import os
from dataclasses import dataclass

HOST = "0.0.0.0"
PORT = 5000

STORAGES = ("redis", "mem")


def _flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _log_level(value: str) -> str:
    level = value.strip().upper()
    # getLevelName maps known names to ints, anything else to a string
    return level if isinstance(logging.getLevelName(level), int) else "INFO"


@dataclass(frozen=True)
class Settings:
    store_host: str = "redis"
    store_port: int = 6379
    atomic: bool = False
    log_level: str = "INFO"
    threads: int = 20
    storage: str = "redis"   # redis | mem
    connect_retries: int = 5

    @classmethod
    def from_env(cls, env=None) -> "Settings":
        env = os.environ if env is None else env
        storage = env.get("STORAGE", "redis").strip().lower()
        if storage not in STORAGES:
            raise ValueError(f"STORAGE must be one of {', '.join(STORAGES)}, got {storage!r}")
        return cls(
            store_host=env.get("REDIS_HOST", "redis"),
            store_port=int(env.get("REDIS_PORT", "6379")),
            atomic=_flag(env.get("ATOMIC_INCR", "0")),
            log_level=_log_level(env.get("LOG_LEVEL", "INFO")),
            threads=int(env.get("THREADS", "20")),
            storage=storage,
            connect_retries=int(env.get("CONNECT_RETRIES", "5")),
        )
