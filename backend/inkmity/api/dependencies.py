from typing import Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session
from jose import JWTError, jwt

from ..core.config import settings
from ..database import get_db
from ..models.user import User
from ..crud import crud_user
from .auth import oauth2_scheme


def decode_token(token: str) -> dict:
    """Verify a Clerk session token (RS256) or a locally signed HS256 token."""
    if settings.CLERK_JWT_KEY:
        key, algorithms = settings.CLERK_JWT_KEY, ["RS256"]
    else:
        key, algorithms = settings.SECRET_KEY, [settings.ALGORITHM]
    options = {"verify_aud": False}
    if settings.CLERK_ISSUER:
        return jwt.decode(token, key, algorithms=algorithms, issuer=settings.CLERK_ISSUER, options=options)
    return jwt.decode(token, key, algorithms=algorithms, options=options)


def get_current_user_id(token: Optional[str] = Depends(oauth2_scheme)) -> str:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not token:
        raise credentials_exception
    try:
        payload = decode_token(token)
    except JWTError:
        raise credentials_exception
    user_id = payload.get("sub")
    if not user_id:
        raise credentials_exception
    return str(user_id)


def get_current_user(
    user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)
) -> User:
    """The synced local account for the caller; 404 until /users/sync ran."""
    user = crud_user.get_by_clerk_id(db, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
