# PURPOSE: password hashing and the session-token dependency for protected routes.

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
import bcrypt

from .config import settings
from .models import UserPublic
from .sessions import SessionMap
from .store_db import get_db, get_user


# --- Password helpers (bcrypt, no passlib) ---

def hash_password(password: str) -> str:
    """Return a bcrypt hash for the given plain password."""
    if not isinstance(password, str):
        raise TypeError("password must be a string")
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify a plain password against its bcrypt hash."""
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            password_hash.encode("utf-8"),
        )
    except ValueError:
        return False


# --- Session helpers ---

def get_sessions(request: Request) -> SessionMap:
    """Return the process-wide session map created in the lifespan."""
    return request.app.state.sessions


def extract_token(request: Request) -> str | None:
    """Session token from the cookie first, then the Authorization header."""
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if token:
        return token
    header = request.headers.get("Authorization")
    if not header:
        return None
    scheme, _, value = header.partition(" ")
    if value and scheme.lower() == "bearer":
        return value.strip()
    return header.strip()


def get_current_user(
    request: Request,
    sessions: SessionMap = Depends(get_sessions),
    db: Session = Depends(get_db),
) -> UserPublic:
    """Resolve the session token to a stored user, or 401."""
    username = sessions.resolve(extract_token(request))
    if username is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    row = get_user(db, username)
    if row is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return UserPublic(username=row.username)
