import re
import sys
import time
from concurrent.futures import ThreadPoolExecutor

import requests
from requests.adapters import HTTPAdapter

COUNT_RE = re.compile(r"Number of visits is: (\d+)\s*$")


def make_session(pool: int) -> requests.Session:
    s = requests.Session()
    adapter = HTTPAdapter(pool_connections=pool, pool_maxsize=pool, max_retries=0)
    s.mount("http://", adapter)
    s.headers.update({"Connection": "keep-alive"})
    return s


def parse_visits(body: str) -> int:
    m = COUNT_RE.search(body)
    if not m:
        raise ValueError(f"unexpected response body: {body!r}")
    return int(m.group(1))


def visit(s, base: str) -> int:
    r = s.get(f"{base}/", timeout=10)
    r.raise_for_status()
    return parse_visits(r.text)


def worker(base: str, n: int, pool: int) -> int:
    s = make_session(pool)
    last = 0
    for _ in range(n):
        last = visit(s, base)
    return last


def run(base: str, clients: int, n: int) -> bool:
    # every probe visit bumps the counter too
    before = visit(requests, base)
    print(f"[start] base={base} clients={clients} calls_per_client={n}", flush=True)

    t0 = time.perf_counter()
    with ThreadPoolExecutor(max_workers=clients) as ex:
        futures = [ex.submit(worker, base, n, clients) for _ in range(clients)]
        for f in futures:
            f.result()
    dt = time.perf_counter() - t0

    after = visit(requests, base)
    total = clients * n
    expected = before + total + 1
    rps = total / dt if dt > 0 else float("inf")
    ok = after == expected

    print(f"[done] time_sec={dt:.6f} rps={rps:.2f}", flush=True)
    print(f"count_before={before} count_after={after} expected={expected} "
          f"lost={expected - after} ok={ok}", flush=True)
    return ok


def main():
    base = sys.argv[1] if len(sys.argv) > 1 else "http://127.0.0.1:5000"
    clients = int(sys.argv[2]) if len(sys.argv) > 2 else 10
    n = int(sys.argv[3]) if len(sys.argv) > 3 else 1_000
    run(base.rstrip("/"), clients, n)


if __name__ == "__main__":
    main()
