"""
Pydantic schemas for threat level lookup endpoints.
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class ThreatLevelData(BaseModel):
    """Extracted threat level"""
    threat_level: str


class LookupMeta(BaseModel):
    """Lookup metadata"""
    cached: bool
    elapsed_ms: float = Field(ge=0)
    source: str
    user_agent: Optional[str] = None


class ThreatLookupResponse(BaseModel):
    """Response for a successful lookup"""
    input: str
    data: ThreatLevelData
    meta: LookupMeta


class ServiceInfoResponse(BaseModel):
    """Service metadata returned when no IP is given"""
    service: str
    status: str
    version: str
    timestamp: datetime
    usage: str


class CacheStatsResponse(BaseModel):
    """Cache statistics"""
    cache_size: int
    cache_keys: List[str]
    ttl_minutes: float


class CacheClearResponse(BaseModel):
    """Result of a cache clear request"""
    message: str
    ip: Optional[str] = None
    deleted: Optional[bool] = None
    cleared_count: Optional[int] = None


class HealthResponse(BaseModel):
    """Liveness probe"""
    status: str
    service: str
    timestamp: datetime
