"""
Family linking writes.

Scope:
- A parent links an existing player account by username
- Linking is idempotent; the account-context resolver only ever reads these rows
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from homegrown.common.auth import get_current_profile
from homegrown.common.logger import get_logger
from homegrown.persistence.session import get_db
from homegrown.persistence.models import Profile, User, ParentPlayerRelationship

router = APIRouter(prefix="/family", tags=["family"])

logger = get_logger(__name__)


# ------------------------------------------------------------
# Models
# ------------------------------------------------------------
class PlayerLinkRequest(BaseModel):
    player_username: str = Field(..., min_length=1, max_length=80)
    relationship_type: str = Field("parent", pattern="^(parent|guardian|other)$")


# ------------------------------------------------------------
# Routes
# ------------------------------------------------------------
@router.post("/players", status_code=201)
def link_player(
    payload: PlayerLinkRequest,
    parent: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    if parent.role != "parent":
        raise HTTPException(status_code=403, detail="Only parent accounts can link players")

    username = payload.player_username.strip().lower()
    user = db.query(User).filter(User.username == username).first()
    player = db.get(Profile, user.user_id) if user else None
    if not player or player.role != "player":
        raise HTTPException(status_code=404, detail="Player account not found")

    existing = (
        db.query(ParentPlayerRelationship)
        .filter_by(parent_id=parent.id, player_id=player.id)
        .first()
    )
    if existing:
        return {
            "parent_id": parent.id,
            "player_id": player.id,
            "relationship_type": existing.relationship_type,
            "already_linked": True,
        }

    db.add(ParentPlayerRelationship(
        parent_id=parent.id,
        player_id=player.id,
        relationship_type=payload.relationship_type,
    ))
    db.commit()

    logger.info(f"[family] linked player={player.id} to parent={parent.id}")

    return {
        "parent_id": parent.id,
        "player_id": player.id,
        "relationship_type": payload.relationship_type,
    }
