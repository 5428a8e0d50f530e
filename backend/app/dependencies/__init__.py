"""
FastAPI dependencies for the threat level service.
"""

from app.dependencies.access import (
    is_authorized_client,
    require_client_identity,
)
from app.dependencies.services import (
    get_lookup_service,
)

__all__ = [
    "is_authorized_client",
    "require_client_identity",
    "get_lookup_service",
]
