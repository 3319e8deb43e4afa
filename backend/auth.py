"""
Authentication module for bearer JWT and API key validation.
Provides FastAPI dependencies for securing endpoints.

Every exercise identity operation is scoped to the caller; requests without
a resolvable user id are rejected with 401 before any lookup happens.
"""
import jwt
from fastapi import HTTPException, Header
from typing import Optional
import logging

from backend.settings import get_settings

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"


async def get_current_user(
    authorization: Optional[str] = Header(None),
    x_api_key: Optional[str] = Header(None, alias="X-API-Key")
) -> str:
    """
    Authenticate via API key OR bearer JWT.
    Returns user_id string.

    Usage:
        @router.get("/protected")
        async def protected_route(user_id: str = Depends(get_current_user)):
            return {"user_id": user_id}
    """
    # Option 1: API Key authentication
    if x_api_key:
        return validate_api_key(x_api_key)

    # Option 2: JWT authentication
    if authorization:
        return validate_jwt(authorization)

    raise HTTPException(
        status_code=401,
        detail="Missing authentication. Provide Authorization header or X-API-Key."
    )


def validate_api_key(api_key: str) -> str:
    """
    Validate API key and return user_id.

    API keys must carry the user they act for: "sk_live_abc123:user_12345"
    returns "user_12345". A key without a user part is rejected because
    every operation is owner-scoped.
    """
    valid_keys = get_settings().api_keys_list

    if not valid_keys:
        logger.warning("No API keys configured (API_KEYS env var empty)")
        raise HTTPException(status_code=401, detail="API key authentication not configured")

    key_part, _, user_id = api_key.partition(":")

    if key_part not in valid_keys:
        raise HTTPException(status_code=401, detail="Invalid API key")

    if not user_id.strip():
        raise HTTPException(status_code=401, detail="API key missing user ID")

    return user_id.strip()


def validate_jwt(authorization: str) -> str:
    """Validate an HS256 bearer JWT and return its subject as user_id."""
    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization header format")

    token = authorization.split(" ", 1)[1]

    try:
        payload = jwt.decode(
            token,
            get_settings().jwt_secret,
            algorithms=[JWT_ALGORITHM],
            options={"verify_aud": False},
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid JWT: {e}")
        raise HTTPException(status_code=401, detail=f"Invalid token: {str(e)}")

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Token missing user ID")
    logger.debug(f"JWT validated for user: {user_id}")
    return user_id
