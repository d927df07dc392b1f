"""
Security module for JWT authentication.

Decodes bearer tokens issued by the institution's identity provider and
turns them into the Actor the leave core works with. The core trusts
the resulting Actor and performs no further credential checks.

Token claims:
- sub: student id or admin id
- role: "student", or an admin role name (VIEWER ... SUPER_ADMIN)
"""

from typing import Annotated, Any

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from studentleave.core.config import settings
from studentleave.core.logging import get_logger
from studentleave.models.actor import Actor, Admin, AdminRole, Student

logger = get_logger(__name__)

# HTTP Bearer scheme for JWT tokens
security = HTTPBearer()

STUDENT_ROLE = "student"


class TokenData(BaseModel):
    """
    Decoded token data structure.
    """

    sub: str  # Subject (student or admin id)
    role: str = STUDENT_ROLE
    email: str | None = None
    iss: str | None = None  # Issuer
    aud: str | list[str] | None = None  # Audience
    exp: int | None = None  # Expiration
    iat: int | None = None  # Issued at
    raw_claims: dict[str, Any] = {}

    def to_actor(self) -> Actor:
        """
        Map the token to a Student or an Admin.

        Raises:
            ValueError: If the role claim is not recognised
        """
        if self.role.lower() == STUDENT_ROLE:
            return Student(student_id=self.sub)
        return Admin(admin_id=self.sub, role=AdminRole(self.role.upper()))


def _credentials_exception(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_token(token: str) -> TokenData:
    """
    Decode and validate a JWT.

    Args:
        token: JWT token string

    Returns:
        TokenData with decoded information

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        claims = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
            options={
                "verify_aud": settings.JWT_AUDIENCE is not None,
                "verify_iss": settings.JWT_ISSUER is not None,
                "require": ["sub"],
            },
        )
    except jwt.ExpiredSignatureError:
        logger.warning("Token validation failed: token expired")
        raise _credentials_exception("Token has expired")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Token validation failed: {e}")
        raise _credentials_exception("Could not validate credentials")

    known = {"sub", "role", "email", "iss", "aud", "exp", "iat"}
    return TokenData(
        **{key: value for key, value in claims.items() if key in known},
        raw_claims={key: value for key, value in claims.items() if key not in known},
    )


def get_current_actor(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> Actor:
    """
    FastAPI dependency returning the authenticated Actor.

    Raises:
        HTTPException: 401 if the token is invalid or names an unknown role
    """
    token_data = decode_token(credentials.credentials)
    try:
        return token_data.to_actor()
    except ValueError:
        logger.warning(f"Unknown role '{token_data.role}' for subject {token_data.sub}")
        raise _credentials_exception("Unknown role")


CurrentActor = Annotated[Actor, Depends(get_current_actor)]
