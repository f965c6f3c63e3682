# core/security.py
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlmodel import Session, select

from core.config import settings
from core.database import get_session
from core.errors import UnauthorizedError
from models.models import Member, Organization

logger = logging.getLogger(__name__)


# ========================================
# 🔑 JWT / APP CONFIG
# ========================================
SECRET_KEY = settings.JWT_SECRET
ALGORITHM = settings.ALGORITHM or "HS256"
ACCESS_TOKEN_EXPIRE_DAYS = settings.ACCESS_TOKEN_EXPIRE_DAYS

bearer_scheme = HTTPBearer(auto_error=False)


# ========================================
# 🔐 Password Hashing (Argon2)
# ========================================
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash password using Argon2."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password using Argon2."""
    return pwd_context.verify(plain_password, hashed_password)


# ========================================
# 🔑 Token Helpers
# ========================================
def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.utcnow() + (expires_delta or timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS))
    to_encode: Dict[str, Any] = {"sub": user_id, "exp": expire}
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode JWT and return payload."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise UnauthorizedError("Invalid auth token")


# ========================================
# 👤 Authentication & Membership
# ========================================
def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """Return the user id carried by the bearer token."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Invalid auth token")

    payload = decode_token(credentials.credentials)
    user_id = payload.get("sub")
    if not user_id:
        raise UnauthorizedError("Invalid auth token")
    return user_id


def get_user_membership(
    slug: str,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
) -> Tuple[Organization, Member]:
    """Resolve the organization by slug together with the caller's membership."""
    row = session.exec(
        select(Organization, Member)
        .join(Member, Member.organization_id == Organization.id)
        .where(Organization.slug == slug, Member.user_id == user_id)
    ).first()

    if not row:
        raise UnauthorizedError("You're not a member of this organization.")

    organization, membership = row
    return organization, membership
