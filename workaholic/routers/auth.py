# workaholic/routers/auth.py
# PURPOSE: /api/signup, /api/login, /api/logout, /api/checklogin

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from ..auth import extract_token, get_current_user, get_sessions, hash_password, verify_password
from ..config import settings
from ..models import Credentials, TokenResponse, UserPublic
from ..rate_limit import limiter
from ..sessions import SessionMap
from ..store_db import create_user, get_db, get_user

router = APIRouter(tags=["auth"])


@router.post("/signup")
@limiter.limit(settings.RATE_LIMIT_SIGNUP)
def signup(
    request: Request, response: Response, payload: Credentials, db: Session = Depends(get_db)
):
    # Usernames are the user key
    if get_user(db, payload.username) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists")
    create_user(db, payload.username, hash_password(payload.password))
    return {"success": True}


@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.RATE_LIMIT_LOGIN)
def login(
    request: Request,
    response: Response,
    payload: Credentials,
    db: Session = Depends(get_db),
    sessions: SessionMap = Depends(get_sessions),
):
    user = get_user(db, payload.username)
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    token = sessions.create(user.username)
    response.set_cookie(settings.SESSION_COOKIE_NAME, token, httponly=True, samesite="lax")
    return TokenResponse(token=token)


@router.post("/logout")
def logout(request: Request, response: Response, sessions: SessionMap = Depends(get_sessions)):
    sessions.revoke(extract_token(request))
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"success": True, "message": "Logged out successfully"}


@router.get("/checklogin")
def check_login(user: UserPublic = Depends(get_current_user)):
    # If the token is valid, user is injected
    return {"status": True, "message": user.model_dump(by_alias=True)}
