"""
Bearer-token authentication against the external identity provider.

Access tokens are JWTs issued by a Supabase-compatible provider. They are verified
against the provider's JWKS (cached in-process) and mapped 1:1 onto a local User.
"""

import logging
import time
import uuid as uuid_lib
from typing import Optional, Dict, Any
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from pydantic import BaseModel
import httpx
from jose import jwt, jwk
from jose.exceptions import JWTError, JWKError, ExpiredSignatureError, JWTClaimsError

from app.db.session import get_db
from app.models.user import User
from app.core.config import settings

logger = logging.getLogger(__name__)

security = HTTPBearer()

SUPPORTED_ALGORITHMS = ["ES256", "RS256"]

# JWKS cache with TTL
_jwks_cache: Optional[Dict[str, Any]] = None
_jwks_cache_time: float = 0
JWKS_CACHE_TTL = 600  # 10 minutes in seconds


def _verification_failed() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Token verification failed"
    )


def fetch_jwks() -> Dict[str, Any]:
    """
    Fetch JWKS from the identity provider, cached for JWKS_CACHE_TTL seconds.
    A stale cache is returned when a refresh fails.

    Raises:
        HTTPException: 503 if the JWKS cannot be fetched and nothing is cached
    """
    global _jwks_cache, _jwks_cache_time

    current_time = time.time()
    if _jwks_cache is not None and (current_time - _jwks_cache_time) < JWKS_CACHE_TTL:
        logger.debug("Using cached JWKS")
        return _jwks_cache

    try:
        logger.info(f"Fetching JWKS from {settings.auth_jwks_url}")
        response = httpx.get(settings.auth_jwks_url, timeout=10.0)
        response.raise_for_status()
        jwks_data = response.json()
        if not isinstance(jwks_data, dict) or "keys" not in jwks_data:
            raise ValueError("Invalid JWKS structure: missing 'keys' field")
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Failed to fetch JWKS: {e}")
        if _jwks_cache is not None:
            logger.warning("Using expired JWKS cache due to fetch failure")
            return _jwks_cache
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Unable to verify token: JWKS endpoint unavailable"
        )

    _jwks_cache = jwks_data
    _jwks_cache_time = current_time
    logger.info(f"JWKS fetched successfully, {len(jwks_data['keys'])} keys found")
    return jwks_data


def get_signing_key(token: str, jwks: Dict[str, Any]) -> Dict[str, Any]:
    """Return the JWK whose kid matches the token header; 401 if absent."""
    try:
        unverified_header = jwt.get_unverified_header(token)
    except JWTError as e:
        logger.warning(f"Malformed token header: {e}")
        raise _verification_failed()

    kid = unverified_header.get("kid")
    if not kid:
        logger.warning("Token missing 'kid' in header")
        raise _verification_failed()

    for key in jwks.get("keys", []):
        if key.get("kid") == kid:
            return key

    logger.warning(f"Key ID '{kid}' not found in JWKS")
    raise _verification_failed()


class Identity(BaseModel):
    """Represents the authenticated identity from the token."""
    provider: str
    uid: str
    email: Optional[str] = None


def _normalize_uid(uid: uuid_lib.UUID | str) -> str:
    """Normalize the JWT sub to its canonical UUID string."""
    try:
        return str(uuid_lib.UUID(str(uid)))
    except (ValueError, TypeError) as e:
        logger.warning(f"Invalid external_auth_uid format: {uid!r} -> {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid subject (sub) claim in token"
        )


def get_or_create_user(
    db: Session,
    *,
    external_auth_uid: str,
    external_auth_provider: str | None = None,
    email: str | None = None,
) -> User:
    """
    Get the user for an identity-provider UID, creating it on first sight.
    On duplicate key (concurrent first requests), re-queries and returns the existing row.
    """
    uid_str = _normalize_uid(external_auth_uid)
    user = db.query(User).filter(User.external_auth_uid == uid_str).first()
    if user:
        if email is not None and user.email is None:
            user.email = email
            db.commit()
            db.refresh(user)
        return user

    logger.info(f"Creating new user for external_auth_uid={uid_str}, provider={external_auth_provider}")
    user = User(
        external_auth_uid=uid_str,
        external_auth_provider=external_auth_provider or "email",
        email=email,
    )
    db.add(user)
    try:
        db.commit()
        db.refresh(user)
        return user
    except IntegrityError:
        db.rollback()
        user = db.query(User).filter(User.external_auth_uid == uid_str).first()
        if user is not None:
            return user
        raise


def verify_access_token(token: str) -> dict:
    """
    Verify an access token and return its claims.

    Checks signature (via JWKS), issuer, audience and expiry.

    Raises:
        HTTPException: 401 if verification fails, 503 if the JWKS is unavailable
    """
    jwks = fetch_jwks()
    jwk_key = get_signing_key(token, jwks)

    header_alg = jwt.get_unverified_header(token).get("alg")
    jwk_alg = jwk_key.get("alg")
    if header_alg and jwk_alg and header_alg != jwk_alg:
        logger.warning(f"Algorithm mismatch: header={header_alg}, JWK={jwk_alg}")
        raise _verification_failed()
    if (header_alg or jwk_alg or "ES256") not in SUPPORTED_ALGORITHMS:
        logger.warning(f"Unsupported algorithm: {header_alg or jwk_alg}")
        raise _verification_failed()

    try:
        key = jwk.construct(jwk_key)
    except JWKError as e:
        logger.error(f"Failed to construct key from JWK: {e}")
        raise _verification_failed()

    try:
        payload = jwt.decode(
            token,
            key,
            algorithms=SUPPORTED_ALGORITHMS,
            audience=settings.auth_jwt_audience,
            issuer=settings.auth_issuer,
        )
    except ExpiredSignatureError:
        logger.warning("Token has expired")
        raise _verification_failed()
    except JWTClaimsError as e:
        logger.warning(f"Token claims validation failed: {e}")
        raise _verification_failed()
    except JWTError as e:
        logger.warning(f"JWT verification error: {e}")
        raise _verification_failed()

    logger.debug(f"Token verified for sub: {payload.get('sub')}")
    return payload


def identity_from_claims(claims: dict) -> Identity:
    uid = claims.get("sub")
    if not uid:
        logger.warning("Token missing subject (sub) claim")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing subject (sub) claim"
        )

    # OAuth providers are recorded in app_metadata; email/password tokens carry none
    provider = (claims.get("app_metadata") or {}).get("provider") \
        or (claims.get("user_metadata") or {}).get("provider") \
        or "email"
    return Identity(provider=provider, uid=uid, email=claims.get("email"))


def get_current_identity(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> Identity:
    """Verify the Bearer token and return the identity it asserts."""
    if not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing token"
        )
    identity = identity_from_claims(verify_access_token(credentials.credentials))
    logger.info(f"Authenticated user: sub={identity.uid}, provider={identity.provider}")
    return identity


def get_current_user_optional(
    credentials: HTTPAuthorizationCredentials | None = Depends(HTTPBearer(auto_error=False)),
    db: Session = Depends(get_db)
) -> User | None:
    """
    Get current user if authenticated, otherwise return None.
    Does not create users; use for endpoints that work for both guests and authenticated users.
    """
    if not credentials or not credentials.credentials:
        return None
    try:
        identity = identity_from_claims(verify_access_token(credentials.credentials))
        uid_str = _normalize_uid(identity.uid)
    except HTTPException:
        return None
    return db.query(User).filter(User.external_auth_uid == uid_str).first()


def get_current_user(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
) -> User:
    """Get or create the local user for the authenticated identity (strict 1:1)."""
    return get_or_create_user(
        db,
        external_auth_uid=identity.uid,
        external_auth_provider=identity.provider,
        email=identity.email,
    )
