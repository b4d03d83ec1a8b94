import threading
from unittest import mock

import pytest

from visit_counter import wb_client_benchmark as bench


class FakeResponse:
    def __init__(self, text):
        self.text = text

    def raise_for_status(self):
        pass


class CounterServer:
    """Stands in for a session; `lossy` skips every other write."""

    def __init__(self, lossy=False):
        self.count = 0
        self.lossy = lossy
        self.lock = threading.Lock()

    def get(self, url, timeout=None):
        with self.lock:
            self.count += 1
            if self.lossy and self.count % 2 == 0:
                self.count -= 1
            return FakeResponse(f"web-1: Number of visits is: {self.count}")


def test_parse_visits():
    assert bench.parse_visits("abc123: Number of visits is: 42") == 42


def test_parse_visits_rejects_error_body():
    with pytest.raises(ValueError):
        bench.parse_visits("Error talking to Redis")


def test_make_session_mounts_pool():
    s = bench.make_session(4)
    adapter = s.get_adapter("http://127.0.0.1:5000/")
    assert adapter._pool_maxsize == 4
    assert s.headers["Connection"] == "keep-alive"


@pytest.mark.parametrize("lossy,ok", [(False, True), (True, False)])
def test_run_reports_lost_updates(lossy, ok, capsys):
    server = CounterServer(lossy=lossy)
    with mock.patch.object(bench, "requests", get=server.get), \
            mock.patch.object(bench, "make_session", return_value=server):
        assert bench.run("http://web", clients=3, n=10) is ok
    out = capsys.readouterr().out
    assert f"ok={ok}" in out
    assert "[done]" in out
