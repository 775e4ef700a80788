"""
Auth context for requests.

Tokens are issued by the auth service; this module only verifies them and
turns the claims into an explicit AuthContext that is passed to services.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError

from ..config import get_settings

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class AppRole(str, enum.Enum):
    CANDIDATE = "candidate"
    RECRUITER = "recruiter"
    ADMIN = "admin"


@dataclass(frozen=True)
class AuthContext:
    user_id: str
    access_token: str
    role: AppRole = AppRole.CANDIDATE
    email: str = None


def _role_from_claims(claims: dict) -> AppRole:
    for key in ("app_metadata", "user_metadata"):
        value = (claims.get(key) or {}).get("role")
        if value in AppRole._value2member_map_:
            return AppRole(value)
    return AppRole.CANDIDATE


def create_access_token(user_id: str, role: AppRole = AppRole.CANDIDATE, email: str = None) -> str:
    """Mint a token shaped like the auth service's. Used by local tooling and tests."""
    settings = get_settings()
    claims = {
        "sub": user_id,
        "aud": settings.jwt_audience,
        "role": "authenticated",
        "app_metadata": {"role": role.value},
    }
    if email:
        claims["email"] = email
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> AuthContext:
    settings = get_settings()
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
    except JWTError as e:
        logger.info("Rejected bearer token: %s", e)
        raise credentials_exception

    user_id = claims.get("sub")
    if not user_id:
        raise credentials_exception
    return AuthContext(
        user_id=user_id,
        access_token=token,
        role=_role_from_claims(claims),
        email=claims.get("email"),
    )


async def get_auth_context(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> AuthContext:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return decode_access_token(credentials.credentials)


async def get_optional_auth_context(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> Optional[AuthContext]:
    """For public pages that personalise when a token is present."""
    if credentials is None:
        return None
    return decode_access_token(credentials.credentials)


def require_role(*roles: AppRole):
    """Dependency factory: the caller must hold one of the given roles (admins always pass)."""
    async def checker(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
        if auth.role != AppRole.ADMIN and auth.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions",
            )
        return auth
    return checker


get_candidate = require_role(AppRole.CANDIDATE)
get_recruiter = require_role(AppRole.RECRUITER)
