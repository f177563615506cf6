"""
Authentication API Routes
"""
from fastapi import APIRouter, Depends, HTTPException, status, Response, Request
from sqlalchemy.orm import Session
from typing import List
from datetime import timedelta

from dentalcare.core.database import get_db
from dentalcare.core.security import create_access_token, get_current_active_user, require_admin
from dentalcare.core.config import settings
from dentalcare.schemas import LoginRequest, Token, UserCreate, UserResponse
from dentalcare.services.user_service import UserService
from dentalcare.services.audit_service import AuditService, AuditAction

router = APIRouter(prefix="/auth", tags=["Authentication"])


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


@router.post("/login", response_model=Token)
async def login(
    login_data: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db)
):
    """Login and get access token"""
    user_service = UserService(db)
    audit_service = AuditService(db)
    ip_address = get_client_ip(request)

    user = user_service.authenticate(login_data.username, login_data.password)
    if not user:
        audit_service.log(
            action=AuditAction.LOGIN_FAILED,
            resource_type="User",
            description=f"Failed login attempt for username '{login_data.username}'",
            ip_address=ip_address,
            status="failure",
            error_message="Invalid credentials"
        )
        db.commit()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is disabled"
        )

    expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={"sub": user.username, "role": user.role},
        expires_delta=expires
    )

    audit_service.log(
        action=AuditAction.LOGIN,
        resource_type="User",
        resource_id=user.id,
        description=f"User '{user.username}' logged in",
        user=user,
        ip_address=ip_address
    )
    db.commit()

    response.set_cookie(
        key="access_token",
        value=access_token,
        httponly=True,
        max_age=int(expires.total_seconds()),
        samesite="lax",
        secure=settings.is_production
    )
    return {"access_token": access_token, "token_type": "bearer"}


@router.post("/logout")
async def logout(response: Response, current_user=Depends(get_current_active_user)):
    response.delete_cookie("access_token")
    return {"message": "Logged out"}


@router.get("/me", response_model=UserResponse)
async def me(current_user=Depends(get_current_active_user)):
    return current_user


@router.get("/users", response_model=List[UserResponse], dependencies=[Depends(require_admin)])
async def list_users(
    role: str = None,
    db: Session = Depends(get_db)
):
    return UserService(db).get_all(role)


@router.post("/users", response_model=UserResponse, status_code=201)
async def create_user(
    user_data: UserCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin)
):
    """Create a staff login; only admins may do this"""
    try:
        user = UserService(db).create(user_data.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService(db).log(
        action=AuditAction.USER_CREATED,
        resource_type="User",
        resource_id=user.id,
        description=f"User '{user.username}' created with role {user.role}",
        new_values={"username": user.username, "email": user.email, "role": user.role},
        user=current_user,
        ip_address=get_client_ip(request)
    )
    db.commit()
    return user
