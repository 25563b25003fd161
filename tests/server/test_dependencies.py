"""
Tests for server/bgo/dependencies.py
Covers: get_current_user (Firebase ID token → caller + role), admin gates.
"""
import pytest
from unittest.mock import patch
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from bgo.config import settings
from bgo.dependencies import get_current_user, require_admin, require_superadmin


@pytest.fixture
def credentials():
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials="firebase-id-token")


class TestGetCurrentUser:

    @pytest.mark.asyncio
    async def test_role_claim_is_used(self, credentials):
        claims = {"uid": "u-1", "email": "a@bgo.test", "name": "A", "role": "admin"}
        with patch("bgo.dependencies.verify_id_token", return_value=claims):
            user = await get_current_user(credentials)
        assert user == {"user_id": "u-1", "email": "a@bgo.test", "name": "A", "role": "admin"}

    @pytest.mark.asyncio
    async def test_invalid_token_raises_401(self, credentials):
        with patch("bgo.dependencies.verify_id_token", side_effect=ValueError("bad token")):
            with pytest.raises(HTTPException) as exc_info:
                await get_current_user(credentials)
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_token_without_uid_raises_401(self, credentials):
        with patch("bgo.dependencies.verify_id_token", return_value={"email": "a@bgo.test"}):
            with pytest.raises(HTTPException) as exc_info:
                await get_current_user(credentials)
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_admin_uid_without_claim_becomes_admin(self, credentials):
        with patch("bgo.dependencies.verify_id_token", return_value={"uid": "u-2"}), \
             patch.object(settings, "ADMIN_UIDS", "u-2"):
            user = await get_current_user(credentials)
        assert user["role"] == "admin"

    @pytest.mark.asyncio
    async def test_superadmin_uid_overrides_claim(self, credentials):
        with patch("bgo.dependencies.verify_id_token", return_value={"uid": "u-3", "role": "admin"}), \
             patch.object(settings, "SUPERADMIN_UIDS", "u-3"):
            user = await get_current_user(credentials)
        assert user["role"] == "superadmin"


class TestRoleGates:

    @pytest.mark.asyncio
    async def test_conductor_is_not_admin(self):
        with pytest.raises(HTTPException) as exc_info:
            await require_admin({"user_id": "c-1", "role": "conductor"})
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_superadmin_passes_admin_gate(self):
        user = {"user_id": "s-1", "role": "superadmin"}
        assert await require_admin(user) is user

    @pytest.mark.asyncio
    async def test_admin_cannot_pass_superadmin_gate(self):
        with pytest.raises(HTTPException) as exc_info:
            await require_superadmin({"user_id": "a-1", "role": "admin"})
        assert exc_info.value.status_code == 403
