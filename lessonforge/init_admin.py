from lessonforge.database import SessionLocal
from lessonforge.models.user import User, UserRole
from lessonforge.services.auth_service import auth_service
from lessonforge.config import settings
import logging

logger = logging.getLogger(__name__)

def create_admin(session_factory=SessionLocal):
    """Create admin user if it doesn't exist"""
    db = session_factory()
    try:
        existing_admin = db.query(User).filter(User.email == settings.admin_email).first()
        if existing_admin:
            return existing_admin

        admin = User(
            email=settings.admin_email,
            password_hash=auth_service.hash_password(settings.admin_password),
            role=UserRole.admin,
            full_name="Admin User"
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)
        logger.info(f"[STARTUP] Admin created: {settings.admin_email}")
        return admin
    finally:
        db.close()
