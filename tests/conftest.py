"""
Fixtures und simulierte Upstreams für die Metrics-Proxy Tests.

Upstreams werden über httpx.MockTransport simuliert: jede Route ist eine
Funktion request -> httpx.Response (oder wirft einen httpx-Fehler).
"""

from typing import Callable, Dict

import httpx
import pytest

from metricsproxy.config import ProxySettings

URL_A = "http://exporter-a.test/metrics"
URL_B = "http://exporter-b.test/metrics"
URL_DOWN = "http://exporter-down.test/metrics"

BODY_A = "metric_a 1\nmetric_b 2\n"
BODY_B = "metric_c 3\nanother_metric 4\n"

Route = Callable[[httpx.Request], httpx.Response]


class FailingStream(httpx.AsyncByteStream):
    """Body-Stream, der nach dem ersten Chunk abbricht"""

    async def __aiter__(self):
        yield b"metric_a 1\n"
        raise httpx.ReadError("connection reset while reading body")

    async def aclose(self):
        pass


class TrackedStream(httpx.AsyncByteStream):
    """Body-Stream, der sich merkt, ob er geschlossen wurde"""

    def __init__(self, body: bytes = b"", fail: bool = False):
        self.body = body
        self.fail = fail
        self.closed = False

    async def __aiter__(self):
        yield self.body
        if self.fail:
            raise httpx.ReadError("connection reset while reading body")

    async def aclose(self):
        self.closed = True


def ok(body: str) -> Route:
    return lambda request: httpx.Response(200, text=body)


def status(code: int) -> Route:
    return lambda request: httpx.Response(code, text="upstream error page")


def unreachable() -> Route:
    def route(request):
        raise httpx.ConnectError("connection refused", request=request)
    return route


def broken_body() -> Route:
    return lambda request: httpx.Response(200, stream=FailingStream())


def crashing() -> Route:
    def route(request):
        raise RuntimeError("unexpected failure in transport")
    return route


def make_transport(routes: Dict[str, Route]) -> httpx.MockTransport:
    """Baut einen MockTransport; unbekannte URLs verhalten sich wie nicht erreichbar"""

    def handler(request: httpx.Request) -> httpx.Response:
        route = routes.get(str(request.url), unreachable())
        return route(request)

    return httpx.MockTransport(handler)


def lines_of(body: str):
    return [line for line in body.split("\n") if line]


@pytest.fixture
def two_upstreams() -> httpx.MockTransport:
    return make_transport({URL_A: ok(BODY_A), URL_B: ok(BODY_B)})


@pytest.fixture
def settings() -> ProxySettings:
    return ProxySettings(upstream_urls=(URL_A, URL_B))
