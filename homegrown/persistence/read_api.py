"""
Family READ API.

Lists the players a parent account is linked to. Player accounts get their
own entry only; sibling visibility goes through the account context.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from homegrown.common.auth import get_current_profile
from homegrown.persistence.backend import SqlBackend
from homegrown.persistence.models import Profile
from homegrown.persistence.session import get_db

router = APIRouter(prefix="/family", tags=["family"])


@router.get("/players")
def list_players(
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    if profile.role == "parent":
        players = SqlBackend(db).list_linked_profiles(profile.id)
    elif profile.role == "player":
        players = [profile]
    else:
        players = []

    return {
        "players": [
            {
                "player_id": p.id,
                "first_name": p.first_name,
                "last_name": p.last_name,
            }
            for p in players
        ]
    }
