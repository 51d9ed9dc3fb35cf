from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from lessonforge.database import get_db
from lessonforge.models.user import User
from lessonforge.services.auth_service import auth_service

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

async def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    token_data = auth_service.decode_access_token(token)
    if token_data is None:
        raise credentials_exception
    user = auth_service.get_user_by_email(db, token_data.email)
    if user is None or not user.is_active:
        raise credentials_exception
    return user
