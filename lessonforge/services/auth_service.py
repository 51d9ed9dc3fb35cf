from datetime import datetime, timedelta
from typing import Dict, Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session
from lessonforge.models.user import User
from lessonforge.schemas.auth import TokenData
from lessonforge.config import settings
import secrets
import logging

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=12)


class AuthService:
    """Password hashing, bearer tokens and the single refresh token stored per user"""

    @staticmethod
    def hash_password(password: str) -> str:
        return pwd_context.hash(password)

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
        user = AuthService.get_user_by_email(db, email)
        if not user or not user.is_active:
            return None
        try:
            valid = pwd_context.verify(password, user.password_hash)
        except ValueError as e:
            logger.warning(f"[AUTH] Unreadable password hash for user {user.id}: {e}")
            return None
        return user if valid else None

    @staticmethod
    def issue_tokens(db: Session, user: User) -> Dict[str, str]:
        """New access token plus a rotated refresh token; the previous refresh token stops working"""
        expire = datetime.utcnow() + timedelta(minutes=settings.access_token_expire_minutes)
        access_token = jwt.encode({"sub": user.email, "exp": expire}, settings.secret_key, algorithm=settings.algorithm)
        refresh_token = secrets.token_urlsafe(32)
        AuthService.set_refresh_token(db, user, refresh_token)
        return {"access_token": access_token, "refresh_token": refresh_token, "token_type": "bearer"}

    @staticmethod
    def decode_access_token(token: str) -> Optional[TokenData]:
        try:
            payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        except JWTError as e:
            logger.info(f"[AUTH] Rejected access token: {e}")
            return None
        email = payload.get("sub")
        return TokenData(email=email) if email else None

    @staticmethod
    def user_for_refresh_token(db: Session, refresh_token: str) -> Optional[User]:
        user = db.query(User).filter(User.refresh_token == refresh_token).first()
        return user if user and user.is_active else None

    @staticmethod
    def set_refresh_token(db: Session, user: User, refresh_token: Optional[str]):
        user.refresh_token = refresh_token
        db.commit()


auth_service = AuthService()
