"""
Test Configuration and Fixtures

The lookup pipeline is exercised without network access: the upstream
fetcher is replaced by stubs or an httpx.MockTransport, and the TTL cache
runs on a manually advanced clock.
"""

import os

# Must be set before app modules read settings
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ENABLE_REQUEST_LOGGING", "false")

import pytest

from app.services.extractor import ThreatLevelExtractor
from app.services.ttl_cache import TTLCache
from app.services.upstream import FetchResult


class FakeClock:
    """Monotonic clock that only moves when told to"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class StubFetcher:
    """Stand-in for UpstreamFetcher returning canned FetchResults"""

    host = "db-ip.com"

    def __init__(self, result: FetchResult = None, on_fetch=None):
        self.result = result
        self.on_fetch = on_fetch
        self.calls = []

    async def fetch(self, ip: str) -> FetchResult:
        self.calls.append(ip)
        if self.on_fetch:
            self.on_fetch()
        return self.result

    async def aclose(self):
        pass


def make_fetch_result(body: str = "", status_code: int = 200, reason: str = "OK", error: str = None) -> FetchResult:
    return FetchResult(
        ok=error is None and 200 <= status_code < 300,
        status_code=None if error else status_code,
        reason="" if error else reason,
        body="" if error else body,
        user_agent="Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/136.0.6500.10 Safari/537.36",
        url="https://db-ip.com/8.8.8.8",
        error=error,
    )


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def ttl_cache(fake_clock):
    return TTLCache(ttl_seconds=1800, clock=fake_clock)


@pytest.fixture
def extractor():
    return ThreatLevelExtractor()


@pytest.fixture
def fetch_result():
    """Factory for canned FetchResults"""
    return make_fetch_result


@pytest.fixture
def stub_fetcher():
    """Factory for StubFetcher instances"""
    return StubFetcher


@pytest.fixture
def dbip_page_high():
    """Trimmed db-ip.com page with the threat level sentence"""
    return """<html><body>
<div class="card">
  <p>Estimated threat level for this IP address is <span class="badge badge-High">High</span></p>
</div>
</body></html>"""


@pytest.fixture
def dbip_page_bare_badge():
    """Page where only a severity badge survives"""
    return """<html><body>
<table><tr><td>Threat</td><td><span class='label badge-critical'>Critical</span></td></tr></table>
</body></html>"""


@pytest.fixture
def dbip_page_no_threat():
    return "<html><body><h1>Rate limit reached</h1><p>Please try again later.</p></body></html>"
