"""
Upstream fetcher for db-ip.com reputation pages.

Issues a single GET per lookup with a freshly generated browser identity
and a full browser-like header set. HTTP error statuses are returned as
normal results; only transport failures (DNS, connect, read, timeout) are
reported through ``FetchResult.error``. Nothing is retried here.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional
from urllib.parse import quote

import httpx

from app.metrics import record_upstream_fetch
from app.services.user_agent import generate_user_agent

logger = logging.getLogger(__name__)


@dataclass
class FetchResult:
    """Outcome of one upstream request"""
    ok: bool
    status_code: Optional[int]
    reason: str
    body: str
    user_agent: str
    url: str
    error: Optional[str] = None

    @property
    def transport_failed(self) -> bool:
        return self.error is not None


class UpstreamFetcher:
    """Fetches reputation pages from the upstream source"""

    def __init__(
        self,
        base_url: str = "https://db-ip.com",
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
        user_agent_factory: Callable[[], str] = generate_user_agent,
    ):
        self.base_url = base_url.rstrip("/")
        self.host = httpx.URL(self.base_url).host
        self.user_agent_factory = user_agent_factory
        self.client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    def build_url(self, ip: str) -> str:
        """Embed the IP into the upstream path template"""
        return f"{self.base_url}/{quote(ip, safe=':.')}"

    def build_headers(self, user_agent: str) -> Dict[str, str]:
        return {
            "Host": self.host,
            "User-Agent": user_agent,
            "Referer": f"{self.base_url}/",
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
            "Accept-Encoding": "gzip, deflate",
            "Connection": "keep-alive",
            "Upgrade-Insecure-Requests": "1",
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
        }

    async def fetch(self, ip: str) -> FetchResult:
        """
        Fetch the reputation page for a validated IP.

        Args:
            ip: Validated IP address as the caller wrote it

        Returns:
            FetchResult; ``error`` is set only on transport failure
        """
        user_agent = self.user_agent_factory()
        url = self.build_url(ip)
        start = time.perf_counter()

        try:
            response = await self.client.get(url, headers=self.build_headers(user_agent))
        except httpx.RequestError as e:
            record_upstream_fetch(None, time.perf_counter() - start)
            logger.error(f"Upstream transport error for {ip}: {type(e).__name__}: {e}")
            return FetchResult(
                ok=False,
                status_code=None,
                reason="",
                body="",
                user_agent=user_agent,
                url=url,
                error=f"Network error: {type(e).__name__}: {e}",
            )

        record_upstream_fetch(response.status_code, time.perf_counter() - start)
        logger.debug(f"Upstream responded {response.status_code} for {ip}")

        return FetchResult(
            ok=response.is_success,
            status_code=response.status_code,
            reason=response.reason_phrase,
            body=response.text,
            user_agent=user_agent,
            url=url,
        )

    async def aclose(self):
        """Close the underlying HTTP client"""
        await self.client.aclose()
