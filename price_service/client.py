"""
并发压测客户端
对四个行情接口各发一次请求，再用 N 个线程并发请求同一代码，
最后对 /daily 再跑一轮（应命中缓存，明显更快）。

运行方式:
    python -m price_service.client [base_url] [symbol] [threads]
"""

import argparse
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Sequence

import requests


ENDPOINTS = ("daily", "intraday", "weekly", "monthly")
HTTP_TIMEOUT = 30.0
_SEPARATOR = "═" * 60


@dataclass
class RequestResult:
    thread_id: int
    success: bool
    status_code: int
    duration_ms: int
    price_count: int
    error: Optional[str] = None


@dataclass
class LoadSummary:
    successes: int = 0
    failures: int = 0

    @property
    def total(self) -> int:
        return self.successes + self.failures

    @property
    def success_rate(self) -> float:
        return self.successes * 100.0 / self.total if self.total else 0.0

    def record(self, results: Sequence[RequestResult]) -> None:
        for result in results:
            if result.success:
                self.successes += 1
            else:
                self.failures += 1


class LoadClient:
    """基于 requests 的同步客户端，线程池并发"""

    def __init__(
        self,
        base_url: str,
        symbol: str,
        session: Optional[requests.Session] = None,
        timeout: float = HTTP_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.symbol = symbol.upper()
        self._session = session
        self._local = threading.local()
        self.timeout = timeout

    @property
    def session(self) -> requests.Session:
        if self._session is not None:
            return self._session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
        return session

    def url_for(self, endpoint: str) -> str:
        return f"{self.base_url}/stock/{endpoint}?symbol={self.symbol}"

    def request(self, endpoint: str, thread_id: int = 1) -> RequestResult:
        start = time.perf_counter()
        try:
            response = self.session.get(self.url_for(endpoint), timeout=self.timeout)
        except requests.RequestException as exc:
            return RequestResult(thread_id, False, 0, _elapsed_ms(start), 0, str(exc))

        duration = _elapsed_ms(start)
        if response.status_code != 200:
            return RequestResult(
                thread_id, False, response.status_code, duration, 0, response.text[:200]
            )
        return RequestResult(thread_id, True, 200, duration, _count_prices(response))

    def run_concurrent(self, endpoint: str, threads: int) -> List[RequestResult]:
        """threads 个线程同时请求同一接口，结果按线程编号排序"""
        with ThreadPoolExecutor(max_workers=threads) as pool:
            futures = [
                pool.submit(self.request, endpoint, thread_id)
                for thread_id in range(1, threads + 1)
            ]
            return [f.result() for f in futures]


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _count_prices(response: requests.Response) -> int:
    try:
        return len(response.json().get("prices") or {})
    except (ValueError, AttributeError):
        return -1


# ── 结果输出 ──────────────────────────────────────────────

def _print_header(title: str) -> None:
    print("\n" + _SEPARATOR)
    print(f"  {title}")
    print(_SEPARATOR)


def print_results(results: Sequence[RequestResult], total_ms: int) -> None:
    print(f"{'线程':<6} {'状态':<8} {'HTTP':<6} {'耗时':<8} 价格数/错误")
    print("─" * 55)
    for r in results:
        status = "✓ OK" if r.success else "✗ FAIL"
        detail = f"{r.price_count} 个价格" if r.success else (r.error or "error")
        print(f"{r.thread_id:<6} {status:<8} {r.status_code:<6} {str(r.duration_ms) + 'ms':<8} {detail}")
    print("─" * 55)

    durations = [r.duration_ms for r in results] or [0]
    ok = sum(1 for r in results if r.success)
    print(f"结果: {ok} 成功, {len(results) - ok} 失败")
    print(
        f"耗时: min={min(durations)}ms  max={max(durations)}ms  "
        f"avg={sum(durations) / len(durations):.0f}ms"
    )
    print(f"并发总耗时: {total_ms} ms")


def run(client: LoadClient, threads: int) -> LoadSummary:
    summary = LoadSummary()

    _print_header("基础测试：每个接口一次请求")
    for endpoint in ENDPOINTS:
        result = client.request(endpoint)
        summary.record([result])
        print(f"{endpoint.upper():<12} → {client.url_for(endpoint)}")
        if result.success:
            print(f"  ✓ HTTP 200  |  {result.price_count} 个价格  |  {result.duration_ms} ms\n")
        else:
            print(f"  ✗ HTTP {result.status_code}   |  {result.duration_ms} ms")
            print(f"  响应: {result.error}\n")

    rounds = list(ENDPOINTS) + ["daily"]
    for index, endpoint in enumerate(rounds):
        if index == len(ENDPOINTS):
            _print_header("第二轮（数据已缓存，应更快）")
        _print_header(f"并发测试：{threads} 个线程 → /stock/{endpoint}?symbol={client.symbol}")
        start = time.perf_counter()
        results = client.run_concurrent(endpoint, threads)
        summary.record(results)
        print_results(results, _elapsed_ms(start))

    _print_header("最终汇总")
    print(f"  总请求数: {summary.total}")
    print(f"  成功:     {summary.successes}")
    print(f"  失败:     {summary.failures}")
    print(f"  成功率:   {summary.success_rate:.1f}%")
    print(_SEPARATOR)
    return summary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="行情服务并发压测客户端")
    parser.add_argument("base_url", nargs="?", default="http://localhost:8000")
    parser.add_argument("symbol", nargs="?", default="IBM")
    parser.add_argument("threads", nargs="?", type=int, default=10)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    client = LoadClient(args.base_url, args.symbol)

    _print_header("并发客户端：Stock Price Service")
    print(f"  服务器: {client.base_url}")
    print(f"  代码:   {client.symbol}")
    print(f"  线程:   {args.threads}")

    summary = run(client, args.threads)
    return 0 if summary.failures == 0 else 1


if __name__ == "__main__":
    raise SystemExit(main())
