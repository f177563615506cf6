"""
User Service - accounts and login
"""
from typing import Optional, List
import logging

from sqlalchemy.orm import Session

from dentalcare.core.config import settings
from dentalcare.core.security import get_password_hash, verify_password
from dentalcare.models import User, UserRole, utcnow

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def get_all(self, role: Optional[str] = None) -> List[User]:
        query = self.db.query(User)
        if role:
            query = query.filter(User.role == role)
        return query.order_by(User.username).all()

    def create(self, data: dict) -> User:
        if self.get_by_username(data["username"]):
            raise ValueError("Username already registered")
        if self.get_by_email(data["email"]):
            raise ValueError("Email already registered")

        user = User(
            username=data["username"],
            email=data["email"],
            hashed_password=get_password_hash(data["password"]),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            role=data.get("role", UserRole.RECEPTIONIST.value),
        )
        self.db.add(user)
        self.db.flush()
        return user

    def authenticate(self, username: str, password: str) -> Optional[User]:
        user = self.get_by_username(username)
        if not user or not verify_password(password, user.hashed_password):
            return None
        user.last_login = utcnow()
        return user

    def ensure_bootstrap_admin(self) -> Optional[User]:
        """Create the first superadmin when the users table is empty"""
        if self.db.query(User.id).first() is not None:
            return None
        user = self.create({
            "username": settings.BOOTSTRAP_ADMIN_USERNAME,
            "email": settings.BOOTSTRAP_ADMIN_EMAIL,
            "password": settings.BOOTSTRAP_ADMIN_PASSWORD,
            "role": UserRole.SUPERADMIN.value,
        })
        logger.warning(f"Created bootstrap superadmin '{user.username}'; change its password")
        return user
