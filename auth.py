import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Cookie, Depends, Header
from jose import JWTError, jwt

from config import Settings, get_settings
from errors import Unauthenticated

logger = logging.getLogger(__name__)

SESSION_COOKIE = "session"


# ---------- Identity provider tokens ----------

def verify_id_token(id_token: str, settings: Settings) -> str:
    """Verify an identity-provider ID token and return its subject."""
    if not settings.idp_public_key:
        logger.error("IDP_PUBLIC_KEY is not set")
        raise Unauthenticated("Identity provider is not configured")
    options = {"verify_aud": settings.idp_audience is not None}
    try:
        data = jwt.decode(
            id_token,
            settings.idp_public_key,
            algorithms=[settings.idp_algorithm],
            audience=settings.idp_audience,
            issuer=settings.idp_issuer,
            options=options,
        )
    except JWTError as exc:
        logger.info("Rejected ID token: %s", exc)
        raise Unauthenticated("Invalid ID token") from exc
    subject = data.get("sub")
    if not subject:
        raise Unauthenticated("ID token has no subject")
    return subject


# ---------- Session tokens ----------

def create_session_token(identity: str, settings: Settings) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": identity,
        "iat": now,
        "exp": now + timedelta(minutes=settings.session_expire_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_alg)


def decode_session_token(token: str, settings: Settings) -> Optional[str]:
    try:
        data = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_alg])
    except JWTError:
        return None
    return data.get("sub") or None


def _bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def optional_identity(
    authorization: Optional[str] = Header(None),
    session: Optional[str] = Cookie(None),
    settings: Settings = Depends(get_settings),
) -> Optional[str]:
    """Identity of the caller, or None for anonymous/invalid sessions."""
    token = _bearer(authorization) or session
    if not token:
        return None
    return decode_session_token(token, settings)


def current_identity(identity: Optional[str] = Depends(optional_identity)) -> str:
    if not identity:
        raise Unauthenticated()
    return identity
