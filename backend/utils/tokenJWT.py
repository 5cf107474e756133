# backend/utils/tokenJWT.py
from jose import jwt, JWTError
from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.users import User

# Tokens are issued by the identity service; the storefront only verifies them
bearer_scheme = HTTPBearer()

ADMIN_ROLE = "admin"

CREDENTIALS_ERROR = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Could not validate credentials",
    headers={"WWW-Authenticate": "Bearer"},
)


def create_access_token(data: dict, expires_delta: timedelta = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_subject(token: str) -> Optional[str]:
    """Email carried in the token's ``sub`` claim, or None if the token is invalid or expired."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    return payload.get("sub")


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    email = decode_subject(credentials.credentials)
    if not email:
        raise CREDENTIALS_ERROR

    user = db.query(User).filter(User.email == email).first()
    if user is None:
        raise CREDENTIALS_ERROR
    return user


def has_role(user: User, *roles: str) -> bool:
    return (user.role or "").lower() in roles


def is_admin(user: User) -> bool:
    return has_role(user, ADMIN_ROLE)


# Dependency factory for role checks on top of get_current_user
def role_required(*allowed_roles):
    def _checker(current_user: User = Depends(get_current_user)):
        if allowed_roles and not has_role(current_user, *allowed_roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Forbidden"
            )
        return current_user
    return _checker
