"""Unit tests for ThreatLookupService (threat_lookup.py)"""
import pytest

from app.error_handlers import (
    InvalidIPFormatError,
    UpstreamExtractionFailedError,
    UpstreamUnavailableError,
)
from app.services.threat_lookup import LookupResult, ThreatLookupService

HIGH_PAGE = 'Estimated threat level for this IP address is <span class="badge-High">High</span>'


@pytest.fixture
def build_service(ttl_cache, extractor, fake_clock, stub_fetcher, fetch_result):
    """Build a service whose fetch takes 0.25s of fake time"""
    def _build(body=HIGH_PAGE, status_code=200, reason="OK", error=None, preview_chars=1000):
        fetcher = stub_fetcher(
            fetch_result(body=body, status_code=status_code, reason=reason, error=error),
            on_fetch=lambda: fake_clock.advance(0.25),
        )
        return ThreatLookupService(
            cache=ttl_cache,
            fetcher=fetcher,
            extractor=extractor,
            clock=fake_clock,
            preview_chars=preview_chars,
        )
    return _build


@pytest.mark.unit
class TestLookupCaching:
    """Cache miss then hit"""

    @pytest.mark.asyncio
    async def test_miss_then_hit(self, build_service):
        service = build_service()

        first = await service.lookup("8.8.8.8")
        second = await service.lookup("8.8.8.8")

        assert isinstance(first, LookupResult)
        assert first.cached is False
        assert first.elapsed_ms == 250.0
        assert first.threat_level == "High"
        assert second.cached is True
        assert second.elapsed_ms == 0
        assert second.threat_level == first.threat_level
        assert service.fetcher.calls == ["8.8.8.8"]

    @pytest.mark.asyncio
    async def test_expired_entry_refetches(self, build_service, fake_clock):
        service = build_service()

        await service.lookup("8.8.8.8")
        fake_clock.advance(1800)
        result = await service.lookup("8.8.8.8")

        assert result.cached is False
        assert len(service.fetcher.calls) == 2

    @pytest.mark.asyncio
    async def test_equivalent_ipv6_spellings_share_entry(self, build_service):
        service = build_service()

        first = await service.lookup("2001:DB8:0::1")
        second = await service.lookup("2001:db8::1")

        assert first.key == second.key == "2001:db8::1"
        assert first.input == "2001:DB8:0::1"
        assert second.cached is True
        assert service.fetcher.calls == ["2001:DB8:0::1"]

    @pytest.mark.asyncio
    async def test_ipv4_mapped_address_fetched_as_given(self, build_service):
        service = build_service()

        result = await service.lookup("::ffff:1.2.3.4")

        assert result.key == "::ffff:1.2.3.4"
        assert service.fetcher.calls == ["::ffff:1.2.3.4"]
        assert service.cache_stats()["cache_keys"] == ["::ffff:1.2.3.4"]


@pytest.mark.unit
class TestLookupFailures:
    """Structured failures, no retries, no caching"""

    @pytest.mark.asyncio
    async def test_invalid_ip_never_fetches(self, build_service):
        service = build_service()

        with pytest.raises(InvalidIPFormatError) as exc_info:
            await service.lookup("999.999.999.999")

        assert exc_info.value.ip == "999.999.999.999"
        assert exc_info.value.status_code == 400
        assert service.fetcher.calls == []

    @pytest.mark.asyncio
    async def test_transport_failure(self, build_service, ttl_cache):
        service = build_service(error="Network error: ConnectError: refused")

        with pytest.raises(UpstreamUnavailableError) as exc_info:
            await service.lookup("8.8.8.8")

        assert exc_info.value.status_code == 503
        assert "ConnectError" in exc_info.value.reason
        assert len(ttl_cache) == 0
        assert len(service.fetcher.calls) == 1

    @pytest.mark.asyncio
    async def test_http_error_status(self, build_service, ttl_cache):
        service = build_service(body=HIGH_PAGE, status_code=403, reason="Forbidden")

        with pytest.raises(UpstreamExtractionFailedError) as exc_info:
            await service.lookup("8.8.8.8")

        err = exc_info.value
        assert err.status_code == 502
        assert err.error == "HTTP 403: Forbidden"
        assert err.response_status == 403
        assert err.user_agent.startswith("Mozilla/5.0")
        assert err.url == "https://db-ip.com/8.8.8.8"
        assert len(ttl_cache) == 0

    @pytest.mark.asyncio
    async def test_threat_level_not_found(self, build_service, ttl_cache, dbip_page_no_threat):
        service = build_service(body=dbip_page_no_threat)

        with pytest.raises(UpstreamExtractionFailedError) as exc_info:
            await service.lookup("8.8.8.8")

        assert exc_info.value.error == "Threat level not found in response"
        assert exc_info.value.response_status == 200
        assert exc_info.value.preview == dbip_page_no_threat
        assert len(ttl_cache) == 0

    @pytest.mark.asyncio
    async def test_failure_not_cached_so_next_call_refetches(self, build_service):
        service = build_service(body="<html></html>")

        for _ in range(2):
            with pytest.raises(UpstreamExtractionFailedError):
                await service.lookup("8.8.8.8")

        assert len(service.fetcher.calls) == 2

    @pytest.mark.asyncio
    async def test_body_preview_truncated(self, build_service):
        service = build_service(body="x" * 5000, preview_chars=1000)

        with pytest.raises(UpstreamExtractionFailedError) as exc_info:
            await service.lookup("8.8.8.8")

        assert len(exc_info.value.preview) == 1000
        debug = exc_info.value.debug_info(200)
        assert debug["response_preview"] == "x" * 200 + "..."
        assert debug["response_status"] == 200


@pytest.mark.unit
class TestCacheManagement:
    """Stats, eviction and clearing through the service"""

    @pytest.mark.asyncio
    async def test_stats(self, build_service):
        service = build_service()
        await service.lookup("8.8.8.8")
        await service.lookup("1.1.1.1")

        stats = service.cache_stats()

        assert stats["cache_size"] == 2
        assert sorted(stats["cache_keys"]) == ["1.1.1.1", "8.8.8.8"]
        assert stats["ttl_minutes"] == 30

    @pytest.mark.asyncio
    async def test_evict_normalizes_key(self, build_service):
        service = build_service()
        await service.lookup("2001:db8::1")

        assert service.evict("2001:DB8:0:0::1") is True
        assert service.evict("2001:db8::1") is False

    @pytest.mark.asyncio
    async def test_clear_all_counts_removed(self, build_service):
        service = build_service()
        for ip in ("10.0.0.1", "10.0.0.2", "10.0.0.3"):
            await service.lookup(ip)

        assert service.clear_all() == 3
        assert service.cache_stats()["cache_size"] == 0

    def test_evict_unknown_value(self, build_service):
        assert build_service().evict("not-an-ip") is False
