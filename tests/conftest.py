"""Shared test fixtures."""

import pytest

from visit_counter.app import create_app
from visit_counter.store import INT_RE, InvalidValueError, StoreError


class FakeStore:
    """Records calls; `fail` names operations that should raise StoreError."""

    def __init__(self, data=None, fail=()):
        self.data = dict(data or {})
        self.fail = set(fail)
        self.calls = []

    def _maybe_fail(self, op, key=None):
        if op in self.fail:
            raise StoreError(op, key, OSError("connection refused"))

    def connect(self):
        self.calls.append(("connect",))
        self._maybe_fail("connect")

    def ping(self):
        return "ping" not in self.fail

    def get(self, key):
        self.calls.append(("get", key))
        self._maybe_fail("get", key)
        return self.data.get(key)

    def set(self, key, value):
        self.calls.append(("set", key, value))
        self._maybe_fail("set", key)
        self.data[key] = str(value)

    def incr(self, key):
        self.calls.append(("incr", key))
        self._maybe_fail("incr", key)
        raw = self.data.get(key, "0")
        if not INT_RE.fullmatch(raw):
            raise InvalidValueError("incr", key, ValueError(raw))
        v = int(raw) + 1
        self.data[key] = str(v)
        return v

    def close(self):
        self.calls.append(("close",))

    def ops(self):
        return [c[0] for c in self.calls]


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def client(store):
    return create_app(store, hostname="web-1").test_client()
