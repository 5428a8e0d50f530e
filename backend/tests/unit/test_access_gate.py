"""Unit tests for the client identity gate (dependencies/access.py)"""
import pytest

from app.dependencies.access import is_authorized_client, require_client_identity
from app.error_handlers import AccessDeniedError


@pytest.mark.unit
class TestIsAuthorizedClient:

    @pytest.mark.parametrize("user_agent", [
        "ipmap/1.0",
        "Mozilla/5.0 IPMap-Client",
        "curl/8.0 (ipmap)",
    ])
    def test_token_present(self, user_agent):
        assert is_authorized_client(user_agent, "ipmap") is True

    @pytest.mark.parametrize("user_agent", [None, "", "curl/8.0", "ip-map"])
    def test_token_missing(self, user_agent):
        assert is_authorized_client(user_agent, "ipmap") is False

    def test_empty_required_token_denies(self):
        assert is_authorized_client("anything", "") is False


@pytest.mark.unit
class TestRequireClientIdentity:

    @pytest.mark.asyncio
    async def test_accepts_matching_header(self):
        assert await require_client_identity("my-ipmap-client") == "my-ipmap-client"

    @pytest.mark.asyncio
    async def test_rejects_missing_header(self):
        with pytest.raises(AccessDeniedError) as exc_info:
            await require_client_identity(None)
        assert exc_info.value.status_code == 403
