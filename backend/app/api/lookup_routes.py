"""
API routes for DB-IP threat level lookups.

Every route here sits behind the client identity gate.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Union
from fastapi import APIRouter, Depends, Query

from app.config import get_settings
from app.dependencies.access import require_client_identity
from app.dependencies.services import get_lookup_service
from app.services.threat_lookup import ThreatLookupService
from app.schemas.lookup_schemas import (
    CacheClearResponse,
    CacheStatsResponse,
    LookupMeta,
    ServiceInfoResponse,
    ThreatLevelData,
    ThreatLookupResponse,
)

logger = logging.getLogger(__name__)

settings = get_settings()

router = APIRouter(tags=["threat-level"])


@router.get(
    "/",
    response_model=Union[ThreatLookupResponse, ServiceInfoResponse],
    summary="Look up IP threat level"
)
async def lookup_threat_level(
    ip: Optional[str] = Query(
        default=None,
        alias=settings.ip_query_param,
        description="IPv4 or IPv6 address to look up"
    ),
    user_agent: str = Depends(require_client_identity),
    service: ThreatLookupService = Depends(get_lookup_service),
):
    """
    Look up the DB-IP estimated threat level for an IP address.

    Without the IP parameter, returns service information instead.
    Results are cached in memory for the configured TTL.
    """
    if not ip:
        return ServiceInfoResponse(
            service=settings.app_name,
            status="online",
            version=settings.service_version,
            timestamp=datetime.now(timezone.utc),
            usage=(
                f"GET /?{settings.ip_query_param}=<IP_ADDRESS> with User-Agent "
                f"containing \"{settings.required_user_agent_token}\""
            ),
        )

    result = await service.lookup(ip)

    return ThreatLookupResponse(
        input=result.input,
        data=ThreatLevelData(threat_level=result.threat_level),
        meta=LookupMeta(
            cached=result.cached,
            elapsed_ms=result.elapsed_ms,
            source=service.fetcher.host,
            user_agent=user_agent,
        ),
    )


@router.get(
    "/cache/stats",
    response_model=CacheStatsResponse,
    dependencies=[Depends(require_client_identity)],
    summary="Cache statistics"
)
async def get_cache_stats(
    service: ThreatLookupService = Depends(get_lookup_service),
):
    """Return the number of cached IPs and their keys."""
    return CacheStatsResponse(**service.cache_stats())


@router.delete(
    "/cache/clear",
    response_model=CacheClearResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_client_identity)],
    summary="Clear cached lookups"
)
async def clear_cache(
    ip: Optional[str] = Query(default=None, description="Evict only this IP"),
    service: ThreatLookupService = Depends(get_lookup_service),
):
    """
    Evict one IP from the cache, or everything when no IP is given.
    """
    if ip:
        deleted = service.evict(ip)
        logger.info(f"Cache eviction requested for {ip}: deleted={deleted}")
        return CacheClearResponse(
            message="Cache cleared for IP" if deleted else "IP not found in cache",
            ip=ip,
            deleted=deleted,
        )

    cleared = service.clear_all()
    return CacheClearResponse(
        message="All cache cleared",
        cleared_count=cleared,
    )
