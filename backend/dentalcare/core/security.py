"""
Security - password hashing, access tokens and clinic role checks
"""
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from dentalcare.core.config import settings
from dentalcare.core.database import get_db
from dentalcare.models import UserRole

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)

# Who may do what; superadmin is implied everywhere
ADMIN_ROLES = (UserRole.ADMIN,)
FINANCE_ROLES = (UserRole.ADMIN, UserRole.RECEPTIONIST)
CLINICAL_ROLES = (UserRole.ADMIN, UserRole.DENTIST, UserRole.HYGIENIST, UserRole.ASSISTANT)
STOCK_ROLES = (UserRole.ADMIN, UserRole.RECEPTIONIST, UserRole.ASSISTANT)
FRONT_DESK_ROLES = (UserRole.ADMIN, UserRole.DENTIST, UserRole.RECEPTIONIST, UserRole.ASSISTANT)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Sign ``data`` (``sub`` = username, ``role``) with an expiry claim"""
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = dict(data, exp=datetime.now(timezone.utc) + lifetime)
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _request_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    # The browser client keeps the token in a cookie, API clients send a header
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get("access_token")


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
):
    from dentalcare.services.user_service import UserService

    token = _request_token(request, credentials)
    if not token:
        raise _unauthorized("Not authenticated")

    claims = decode_access_token(token)
    if not claims or not claims.get("sub"):
        raise _unauthorized("Invalid or expired token")

    user = UserService(db).get_by_username(claims["sub"])
    if user is None:
        raise _unauthorized("User not found")

    # A role change invalidates tokens issued under the old role
    if claims.get("role") and claims["role"] != user.role:
        raise _unauthorized("Role changed since sign-in, please log in again")
    return user


async def get_current_active_user(current_user=Depends(get_current_user)):
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled"
        )
    return current_user


class RoleChecker:
    """Route dependency that admits the listed clinic roles"""

    def __init__(self, allowed_roles: Iterable[UserRole]):
        self.allowed_roles = {role.value for role in allowed_roles}
        self.allowed_roles.add(UserRole.SUPERADMIN.value)

    def __call__(self, user=Depends(get_current_active_user)):
        if user.role not in self.allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{user.role}' is not allowed to perform this action"
            )
        return user


require_admin = RoleChecker(ADMIN_ROLES)
require_finance = RoleChecker(FINANCE_ROLES)
require_clinical = RoleChecker(CLINICAL_ROLES)
require_stock = RoleChecker(STOCK_ROLES)
require_front_desk = RoleChecker(FRONT_DESK_ROLES)
