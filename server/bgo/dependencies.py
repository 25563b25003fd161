"""
B-Go Admin — FastAPI Dependencies
Firebase ID token auth for admin endpoints.
"""
import logging
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from bgo.config import settings
from bgo.firebase import verify_id_token

logger = logging.getLogger("bgo-api")

bearer_scheme = HTTPBearer()

ADMIN_ROLES = ("admin", "superadmin")


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> dict:
    """
    Verify the Firebase ID token and return the caller.
    Raises 401 if the token is invalid or expired.
    """
    try:
        claims = verify_id_token(credentials.credentials)
    except Exception as e:
        logger.warning(f"ID token rejected: {e}")
        raise HTTPException(status_code=401, detail="Token expired or invalid")

    user_id = claims.get("uid") or claims.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token")

    role = claims.get("role", "")
    if user_id in settings.superadmin_uid_list:
        role = "superadmin"
    elif not role and user_id in settings.admin_uid_list:
        role = "admin"

    return {
        "user_id": user_id,
        "email": claims.get("email", ""),
        "name": claims.get("name", ""),
        "role": role,
    }


async def require_admin(user: dict = Depends(get_current_user)) -> dict:
    """Verify that the current user is an admin or superadmin."""
    if user.get("role") not in ADMIN_ROLES:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


async def require_superadmin(user: dict = Depends(require_admin)) -> dict:
    """Only superadmins may delete conductors."""
    if user.get("role") != "superadmin":
        raise HTTPException(status_code=403, detail="Superadmin access required")
    return user
