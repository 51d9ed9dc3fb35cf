from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from lessonforge.database import get_db
from lessonforge.dependencies.dependencies import get_current_user
from lessonforge.schemas.auth import UserCreate, UserLogin, Token, TokenRefresh, User
from lessonforge.services.auth_service import auth_service
from lessonforge.models.user import User as UserModel, UserRole
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])

@router.post("/register", response_model=User)
async def register_user(user_data: UserCreate, db: Session = Depends(get_db)):
    existing_user = auth_service.get_user_by_email(db, user_data.email)
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    db_user = UserModel(
        email=user_data.email,
        password_hash=auth_service.hash_password(user_data.password),
        full_name=user_data.full_name,
        role=UserRole.learner
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)

    logger.info(f"[AUTH] Registered user {db_user.id}")
    return db_user

@router.post("/login", response_model=Token)
async def login_user(login_data: UserLogin, db: Session = Depends(get_db)):
    user = auth_service.authenticate_user(db, login_data.email, login_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return auth_service.issue_tokens(db, user)

@router.post("/refresh", response_model=Token)
async def refresh_token(token_data: TokenRefresh, db: Session = Depends(get_db)):
    user = auth_service.user_for_refresh_token(db, token_data.refresh_token)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    return auth_service.issue_tokens(db, user)

@router.post("/logout")
async def logout_user(
    current_user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    auth_service.set_refresh_token(db, current_user, None)
    return {"message": "Successfully logged out"}

@router.get("/me", response_model=User)
async def get_current_user_info(current_user: UserModel = Depends(get_current_user)):
    return current_user
