"""Entra ID (Azure AD) bearer token authentication."""
import logging
import uuid
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

import jwt
from jwt import PyJWKClient
from jwt.exceptions import PyJWTError
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from fleet_api.core.config import settings
from fleet_api.core.database import get_db
from fleet_api.core.errors import AppError, PROBLEM_BASE
from fleet_api.models.user import User

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

ALGORITHMS = ["RS256"]


@dataclass
class AuthenticatedUser:
    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    entra_id: str


def _split(value: Optional[str]) -> List[str]:
    return [part.strip() for part in (value or "").split(",") if part.strip()]


def unauthorized(detail: str) -> AppError:
    return AppError(detail, 401, f"{PROBLEM_BASE}/unauthorized", "Unauthorized")


def forbidden(detail: str) -> AppError:
    return AppError(detail, 403, f"{PROBLEM_BASE}/forbidden", "Forbidden")


def expected_issuer() -> str:
    return settings.ENTRA_EXPECTED_ISSUER or f"https://login.microsoftonline.com/{settings.ENTRA_TENANT_ID}/v2.0"


def jwks_uri() -> str:
    return settings.ENTRA_JWKS_URI or (
        f"https://login.microsoftonline.com/{settings.ENTRA_TENANT_ID}/discovery/v2.0/keys"
    )


@lru_cache(maxsize=1)
def _get_jwks_client() -> PyJWKClient:
    return PyJWKClient(jwks_uri(), cache_keys=True)


def verify_token(token: str) -> dict:
    """Validate an Entra ID access token and return its claims."""
    audiences = _split(settings.ENTRA_API_AUDIENCE)
    if not settings.ENTRA_TENANT_ID or not audiences:
        logger.error("Entra ID validation requested but ENTRA_TENANT_ID / ENTRA_API_AUDIENCE are not set")
        raise AppError("Authentication is not configured", 500)

    try:
        signing_key = _get_jwks_client().get_signing_key_from_jwt(token)
        claims = jwt.decode(
            token,
            signing_key.key,
            algorithms=ALGORITHMS,
            audience=audiences,
            issuer=expected_issuer(),
        )
    except PyJWTError as e:
        logger.warning(f"Rejected bearer token: {e}")
        raise unauthorized("Invalid token")

    if claims.get("tid") != settings.ENTRA_TENANT_ID:
        logger.warning(f"Rejected token from tenant {claims.get('tid')}")
        raise unauthorized("Invalid token tenant")

    allowed_clients = _split(settings.ENTRA_ALLOWED_CLIENT_IDS)
    if allowed_clients:
        client_id = claims.get("azp") or claims.get("appid")
        if client_id not in allowed_clients:
            logger.warning(f"Rejected token issued to client {client_id}")
            raise unauthorized("Client application not allowed")

    if settings.ENTRA_REQUIRED_SCOPE:
        scopes = (claims.get("scp") or "").split()
        if settings.ENTRA_REQUIRED_SCOPE not in scopes:
            raise unauthorized("Required scope missing")

    return claims


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> AuthenticatedUser:
    if credentials is None:
        raise unauthorized("Not authenticated")

    claims = verify_token(credentials.credentials)
    oid = claims.get("oid")
    if not oid:
        raise unauthorized("Token has no object id")

    user = db.query(User).filter(User.entra_id == oid).first()
    if not user:
        logger.warning(f"No user registered for Entra ID {oid}")
        raise forbidden("User is not registered")
    if not user.active:
        raise forbidden("User is inactive")

    return AuthenticatedUser(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        entra_id=user.entra_id,
    )
