import logging
import re
import socket
import sys
import time

from flask import Flask, jsonify

from visit_counter.config import HOST, PORT, Settings
from visit_counter.store import (
    InvalidValueError,
    MemoryStore,
    RedisStore,
    StoreConnectionError,
    StoreError,
)

logger = logging.getLogger(__name__)

KEY = "numVisits"
ERROR_BODY = "Error talking to Redis"
TEXT = {"Content-Type": "text/plain; charset=utf-8"}

# leading decimal prefix, the rest of the value is ignored
LEADING_INT_RE = re.compile(r"\s*([+-]?[0-9]+)")


class ParseError(ValueError):
    pass


def _to_int(raw) -> int:
    m = LEADING_INT_RE.match(str(raw))
    if not m:
        raise ParseError(f"not an integer: {raw!r}")
    v = int(m.group(1))
    if v < 0:
        raise ParseError(f"negative count: {v}")
    return v


def parse_count(raw) -> int:
    if raw is None:
        return 0
    try:
        return _to_int(raw)
    except ParseError as e:
        logger.debug("resetting %s: %s", KEY, e)
        return 0


def _visit(store) -> int:
    count = parse_count(store.get(KEY)) + 1
    store.set(KEY, count)
    return count


def _visit_atomic(store) -> int:
    try:
        count = store.incr(KEY)
    except InvalidValueError as e:
        logger.debug("incr rejected stored %s: %s", KEY, e.cause)
        count = None
    if count is None or count < 1:
        # malformed or negative value: repair it the same way the default path would
        count = _visit(store)
    return count


def create_app(store, hostname: str | None = None, atomic: bool = False) -> Flask:
    app = Flask(__name__)
    app.extensions["visit_counter.store"] = store
    host = hostname or socket.gethostname()
    visit = _visit_atomic if atomic else _visit

    @app.get("/")
    def index():
        try:
            count = visit(store)
        except StoreError as e:
            logger.exception("request failed op=%s key=%s", e.op, e.key)
            return ERROR_BODY, 500, TEXT
        return f"{host}: Number of visits is: {count}", 200, TEXT

    @app.get("/health")
    def health():
        if store.ping():
            return jsonify(status="ok")
        return jsonify(status="unavailable"), 503

    return app


def connect_with_retry(store, retries: int = 5, delay: float = 0.5, sleep=None) -> None:
    sleep = sleep or time.sleep
    for attempt in range(retries + 1):
        try:
            store.connect()
            return
        except StoreConnectionError as e:
            if attempt == retries:
                raise
            logger.warning("redis not reachable (%s), retry %d/%d in %.1fs", e.cause, attempt + 1, retries, delay)
            sleep(delay)
            delay *= 2


def make_store(settings: Settings):
    if settings.storage == "mem":
        return MemoryStore()
    return RedisStore(settings.store_host, settings.store_port)


def main():
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    store = make_store(settings)
    try:
        connect_with_retry(store, retries=settings.connect_retries)
    except StoreConnectionError:
        logger.exception("failed to start app")
        sys.exit(1)

    app = create_app(store, atomic=settings.atomic)
    logger.info("web application is listening on port %d (storage=%s atomic=%s)",
                PORT, settings.storage, settings.atomic)

    from waitress import serve
    try:
        serve(app, host=HOST, port=PORT, threads=settings.threads)
    finally:
        store.close()


if __name__ == "__main__":
    main()
