from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from homegrown.persistence.session import get_db
from homegrown.persistence.models import User, Profile
from homegrown.common.auth import (
    hash_password,
    verify_password,
    create_access_token,
    get_current_profile,
)
from homegrown.common.logger import get_logger

router = APIRouter(prefix="/auth", tags=["auth"])

logger = get_logger(__name__)

REGISTRABLE_ROLES = ["player", "parent", "coach"]


# ------------------------------------------------------------
# Register
# ------------------------------------------------------------
@router.post("/register")
def register(data: dict, db: Session = Depends(get_db)):

    username = data.get("username", "").strip().lower()
    password = data.get("password")
    role = data.get("role", "").strip().lower()
    first_name = data.get("first_name", "").strip()
    last_name = data.get("last_name", "").strip()

    if role not in REGISTRABLE_ROLES:
        raise HTTPException(status_code=400, detail="Invalid role")

    if not username or not password or not first_name:
        raise HTTPException(status_code=400, detail="Missing required fields")

    existing = db.query(User).filter(User.username == username).first()
    if existing:
        raise HTTPException(status_code=400, detail="Username already exists")

    # ------------------------------------------------------------
    # Profile + credentials
    # ------------------------------------------------------------
    profile = Profile(
        role=role,
        first_name=first_name,
        last_name=last_name or None,
    )
    db.add(profile)
    db.flush()

    db.add(User(
        user_id=profile.id,
        username=username,
        password_hash=hash_password(password),
    ))

    db.commit()

    logger.info(f"[auth] registered {role} profile id={profile.id}")

    return {"access_token": create_access_token(profile), "user_id": profile.id}


# ------------------------------------------------------------
# Login
# ------------------------------------------------------------
@router.post("/login")
def login(data: dict, db: Session = Depends(get_db)):

    username = data.get("username", "").strip().lower()
    password = data.get("password")

    if not username or not password:
        raise HTTPException(status_code=400, detail="Missing credentials")

    user = db.query(User).filter(User.username == username).first()

    if not user or not verify_password(password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    profile = db.get(Profile, user.user_id)
    if not profile:
        logger.error(f"[auth] credentials without profile user={user.user_id}")
        raise HTTPException(status_code=404, detail="Profile not found")

    return {"access_token": create_access_token(profile), "user_id": profile.id}


# ------------------------------------------------------------
# Current profile
# ------------------------------------------------------------
@router.get("/me")
def get_me(profile: Profile = Depends(get_current_profile)):
    """
    Identity of the signed-in account. Always the actual role, never the
    view-as role.
    """

    return {
        "user_id": profile.id,
        "role": profile.role,
        "first_name": profile.first_name,
        "last_name": profile.last_name,
    }
