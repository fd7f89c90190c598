"""
Data backend consumed by the identity layer.

The resolver and the sidebar photo presenter only ever talk to the
``Backend`` protocol. ``SqlBackend`` is the production implementation on top
of a SQLAlchemy session plus the avatar bucket.
"""

from typing import List, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from homegrown.common.errors import RelationshipLookupFailed
from homegrown.common.logger import get_logger
from homegrown.persistence.models import Profile, ParentPlayerRelationship

logger = get_logger(__name__)


class ProfileLike(Protocol):
    id: str
    role: str
    first_name: Optional[str]
    last_name: Optional[str]


class Backend(Protocol):
    def get_profile(self, user_id: str) -> Optional[ProfileLike]: ...

    def query_relationships_by_parent(self, parent_id: str) -> List[str]: ...

    def privileged_lookup_parent_for_player(self, player_id: str) -> Optional[str]: ...

    def list_avatar_files(self, user_id: str) -> List[str]: ...

    def get_public_url(self, path: str) -> str: ...


class SqlBackend:
    def __init__(self, db: Session, storage=None):
        self.db = db
        self.storage = storage

    # ---------------------------------------------------------------------
    # Profiles / relationships
    # ---------------------------------------------------------------------

    def get_profile(self, user_id: str) -> Optional[Profile]:
        return self.db.get(Profile, user_id)

    def query_relationships_by_parent(self, parent_id: str) -> List[str]:
        rows = (
            self.db.query(ParentPlayerRelationship.player_id)
            .filter(ParentPlayerRelationship.parent_id == parent_id)
            .order_by(
                ParentPlayerRelationship.created_at,
                ParentPlayerRelationship.player_id,
            )
            .all()
        )
        return [r.player_id for r in rows]

    def privileged_lookup_parent_for_player(self, player_id: str) -> Optional[str]:
        """
        Parent of a player, read with service privileges.

        Runs outside any per-user row filtering so player-only accounts can
        discover their own link. Returns None when there is no parent.
        """
        try:
            row = (
                self.db.query(ParentPlayerRelationship.parent_id)
                .filter(ParentPlayerRelationship.player_id == player_id)
                .order_by(ParentPlayerRelationship.created_at)
                .first()
            )
        except SQLAlchemyError as exc:
            raise RelationshipLookupFailed(str(exc)) from exc

        return row.parent_id if row else None

    def list_linked_profiles(self, parent_id: str) -> List[Profile]:
        return (
            self.db.query(Profile)
            .join(
                ParentPlayerRelationship,
                Profile.id == ParentPlayerRelationship.player_id,
            )
            .filter(ParentPlayerRelationship.parent_id == parent_id)
            .order_by(
                ParentPlayerRelationship.created_at,
                ParentPlayerRelationship.player_id,
            )
            .all()
        )

    # ---------------------------------------------------------------------
    # Avatars
    # ---------------------------------------------------------------------

    def list_avatar_files(self, user_id: str) -> List[str]:
        if self.storage is None:
            return []
        return self.storage.list_files(f"{user_id}/")

    def get_public_url(self, path: str) -> str:
        if self.storage is None:
            raise RuntimeError("avatar storage not configured")
        return self.storage.public_url(path)
