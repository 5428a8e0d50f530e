"""
Access gate for the threat level API.

Callers must identify themselves with a User-Agent header that contains
the configured token (``required_user_agent_token``, case-insensitive).
"""
import logging
from typing import Optional

from fastapi import Header

from app.config import get_settings
from app.error_handlers import AccessDeniedError

logger = logging.getLogger(__name__)


def is_authorized_client(user_agent: Optional[str], required_token: str) -> bool:
    """Check whether a User-Agent carries the required token"""
    if not user_agent or not required_token:
        return False
    return required_token.lower() in user_agent.lower()


async def require_client_identity(
    user_agent: Optional[str] = Header(None, alias="User-Agent")
) -> str:
    """
    Validate the inbound client identity

    Args:
        user_agent: Value of the User-Agent header

    Returns:
        str: The accepted User-Agent

    Raises:
        AccessDeniedError: If the header is missing or lacks the token
    """
    settings = get_settings()

    if not is_authorized_client(user_agent, settings.required_user_agent_token):
        logger.warning(f"Rejected client identity: {user_agent!r}")
        raise AccessDeniedError()

    return user_agent
