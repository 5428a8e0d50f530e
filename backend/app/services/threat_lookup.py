"""
Threat Level Lookup Service

Composes the lookup pipeline:
- Validate the IP address
- Serve from the TTL cache when possible
- On a miss, fetch the db-ip.com page and extract the threat level
- Cache successful extractions only

Failures are raised once and never retried. Two concurrent misses for the
same IP may both reach the upstream; there is no request coalescing.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict

from app.error_handlers import (
    InvalidIPFormatError,
    UpstreamExtractionFailedError,
    UpstreamUnavailableError,
)
from app.metrics import record_lookup, update_cache_size
from app.services.extractor import ThreatLevelExtractor
from app.services.ttl_cache import TTLCache
from app.services.upstream import UpstreamFetcher
from app.utils.ip_utils import is_valid_ip, normalize_ip

logger = logging.getLogger(__name__)


@dataclass
class LookupResult:
    """Successful threat level lookup"""
    input: str
    key: str
    threat_level: str
    cached: bool
    elapsed_ms: float


class ThreatLookupService:
    """
    Threat level lookups backed by db-ip.com with an in-memory TTL cache.
    """

    def __init__(
        self,
        cache: TTLCache,
        fetcher: UpstreamFetcher,
        extractor: ThreatLevelExtractor,
        clock: Callable[[], float] = time.perf_counter,
        preview_chars: int = 1000,
    ):
        self.cache = cache
        self.fetcher = fetcher
        self.extractor = extractor
        self.clock = clock
        self.preview_chars = preview_chars

    async def lookup(self, ip: str) -> LookupResult:
        """
        Look up the threat level for an IP address.

        Args:
            ip: IP address as supplied by the caller

        Returns:
            LookupResult with the threat level and timing metadata

        Raises:
            InvalidIPFormatError: ip is not a valid IPv4/IPv6 address
            UpstreamUnavailableError: the upstream could not be reached
            UpstreamExtractionFailedError: non-2xx status or no threat level in the page
        """
        if not is_valid_ip(ip):
            record_lookup("invalid")
            raise InvalidIPFormatError(ip)

        key = normalize_ip(ip)

        cached = self.cache.get(key)
        if cached is not None:
            record_lookup("hit")
            logger.debug(f"Cache hit: {key}")
            return LookupResult(input=ip, key=key, threat_level=cached, cached=True, elapsed_ms=0)

        record_lookup("miss")
        start = self.clock()

        result = await self.fetcher.fetch(ip)

        if result.transport_failed:
            record_lookup("unavailable")
            raise UpstreamUnavailableError(ip, result.error, result.user_agent)

        if not result.ok:
            record_lookup("extraction_failed")
            raise UpstreamExtractionFailedError(
                ip=ip,
                error=f"HTTP {result.status_code}: {result.reason}",
                status_code=result.status_code,
                user_agent=result.user_agent,
                url=result.url,
                preview=result.body[:self.preview_chars],
            )

        threat_level = self.extractor.extract(result.body)
        elapsed_ms = round((self.clock() - start) * 1000, 2)

        if threat_level is None:
            record_lookup("extraction_failed")
            logger.warning(f"Threat level not found in upstream response for {key}")
            raise UpstreamExtractionFailedError(
                ip=ip,
                error="Threat level not found in response",
                status_code=result.status_code,
                user_agent=result.user_agent,
                url=result.url,
                preview=result.body[:self.preview_chars],
            )

        self.cache.put(key, threat_level)
        update_cache_size(len(self.cache))
        logger.info(f"Threat level for {key}: {threat_level} ({elapsed_ms} ms)")

        return LookupResult(
            input=ip,
            key=key,
            threat_level=threat_level,
            cached=False,
            elapsed_ms=elapsed_ms,
        )

    def cache_stats(self) -> Dict[str, Any]:
        """Get cache statistics"""
        keys = self.cache.keys()
        update_cache_size(len(keys))
        return {
            "cache_size": len(keys),
            "cache_keys": keys,
            "ttl_minutes": self.cache.ttl_seconds / 60,
        }

    def evict(self, ip: str) -> bool:
        """Evict one IP from the cache"""
        key = normalize_ip(ip) if is_valid_ip(ip) else ip
        deleted = self.cache.evict(key)
        update_cache_size(len(self.cache))
        return deleted

    def clear_all(self) -> int:
        """Evict every cached IP"""
        count = self.cache.clear_all()
        update_cache_size(0)
        return count
