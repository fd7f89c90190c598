import jwt
import bcrypt
import os
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session as DbSession

from homegrown.persistence.session import get_db
from homegrown.persistence.models import Profile
from homegrown.identity.context import Session
from homegrown.common.logger import get_logger

logger = get_logger(__name__)

SECRET_KEY = os.getenv("HOMEGROWN_SECRET")

if not SECRET_KEY:
    raise RuntimeError("HOMEGROWN_SECRET environment variable not set")

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_DAYS = int(os.getenv("HOMEGROWN_TOKEN_DAYS", "7"))

bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(password.encode(), hashed.encode())


def create_access_token(profile: Profile, expires_in: Optional[timedelta] = None) -> str:
    expires_in = expires_in or timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS)
    payload = {
        "sub": str(profile.id),
        "role": profile.role,
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def decode_session(token: str) -> Optional[Session]:
    """Session for a bearer token; None when it is invalid or expired."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.info("[auth] expired token")
        return None
    except jwt.InvalidTokenError:
        logger.info("[auth] invalid token")
        return None

    user_id = payload.get("sub")
    if not user_id:
        return None

    exp = payload.get("exp")
    expires_at = datetime.fromtimestamp(exp, tz=timezone.utc) if exp else None
    return Session(user_id=user_id, expires_at=expires_at)


def get_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[Session]:
    if credentials is None:
        return None
    return decode_session(credentials.credentials)


def get_current_profile(
    session: Optional[Session] = Depends(get_session),
    db: DbSession = Depends(get_db),
) -> Profile:
    if session is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    profile = db.get(Profile, session.user_id)
    if not profile:
        # valid token, missing row: same 404 as the account routes
        logger.error(f"[auth] session user={session.user_id} has no profile")
        raise HTTPException(status_code=404, detail=f"No profile for user {session.user_id}")

    return profile
