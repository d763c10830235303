import logging
import uuid

import httpx
import jwt as pyjwt
from jwt import PyJWK
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from settleup.core.config import settings
from settleup.core.database import get_db
from settleup.models.user import User

logger = logging.getLogger(__name__)

security = HTTPBearer()

_jwks_cache: list | None = None


async def _get_jwks() -> list:
    global _jwks_cache
    if _jwks_cache is not None:
        return _jwks_cache
    async with httpx.AsyncClient() as client:
        resp = await client.get(settings.jwks_url)
        resp.raise_for_status()
        keys = resp.json().get("keys", [])
        _jwks_cache = [PyJWK(k) for k in keys]
        return _jwks_cache


async def decode_token(token: str) -> dict:
    """Verify a bearer token against the JWKS endpoint when configured, else the shared secret."""
    if not settings.jwks_url:
        return pyjwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )

    jwks = await _get_jwks()
    kid = pyjwt.get_unverified_header(token).get("kid")
    key = next((k for k in jwks if k.key_id == kid), None)
    if key is None:
        raise pyjwt.InvalidTokenError("No matching key found")
    return pyjwt.decode(
        token,
        key,
        algorithms=["ES256", "RS256"],
        audience=settings.jwt_audience,
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    try:
        payload = await decode_token(credentials.credentials)
        user_id = uuid.UUID(str(payload.get("sub", "")))
    except (pyjwt.PyJWTError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user:
        return user

    # First request from an account issued by the identity provider.
    email = (payload.get("email") or "").strip().lower()
    if not email:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    taken = await db.execute(select(User.id).where(User.email == email))
    if taken.scalar_one_or_none():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    user = User(id=user_id, email=email, display_name=payload.get("name") or email.split("@")[0])
    db.add(user)
    await db.commit()
    logger.info("Provisioned user %s from token claims", user_id)
    return user
