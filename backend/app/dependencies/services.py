"""
Service dependencies resolved from application state.

The lookup service and its cache are built once in the application
lifespan (see ``app.main``) and shared by all requests.
"""
from typing import TYPE_CHECKING

from fastapi import Request

if TYPE_CHECKING:
    from app.services.threat_lookup import ThreatLookupService


def get_lookup_service(request: Request) -> "ThreatLookupService":
    """Return the process-wide ThreatLookupService"""
    return request.app.state.lookup_service
