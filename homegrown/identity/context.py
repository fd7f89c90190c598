"""
Records exchanged by the identity layer.

ViewRole is client-owned "who am I viewing as" state. AccountContext is the
resolver's output: never persisted, recomputed on every request.
"""

from datetime import datetime, timezone
from typing import List, Literal, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

ROLE_KEY = "hg-user-role"
SELECTED_PLAYER_KEY = "selectedPlayerId"
THEME_KEY = "hg-theme"

VIEW_ROLE_KEYS = (ROLE_KEY, SELECTED_PLAYER_KEY)

ViewAs = Literal["parent", "player"]


class Session(BaseModel):
    """Authenticated session as handed out by the auth layer."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    expires_at: Optional[datetime] = None

    def is_active(self, now: Optional[datetime] = None) -> bool:
        if not self.user_id:
            return False
        if self.expires_at is None:
            return True
        now = now or datetime.now(timezone.utc)
        return self.expires_at > now


class ViewRole(BaseModel):
    model_config = ConfigDict(frozen=True)

    current_role: Optional[ViewAs] = None
    selected_player_id: Optional[str] = None

    @classmethod
    def from_storage(cls, storage: Mapping[str, str]) -> "ViewRole":
        role = storage.get(ROLE_KEY)
        # coach/admin values written by the layout mean "no override"
        if role not in ("parent", "player"):
            role = None
        return cls(
            current_role=role,
            selected_player_id=storage.get(SELECTED_PLAYER_KEY) or None,
        )


class AccountContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Actual authenticated user
    actual_user_id: str
    actual_role: str

    # Effective ids after applying the view-as switch
    effective_parent_id: Optional[str] = None
    effective_player_id: Optional[str] = None
    all_linked_player_ids: Tuple[str, ...] = Field(default_factory=tuple)

    is_player: bool = False
    is_parent: bool = False
    viewing_as_parent: bool = False
    viewing_as_player: bool = False
    selected_player_id: Optional[str] = None

    @property
    def needs_player_selection(self) -> bool:
        return (
            self.is_parent
            and self.viewing_as_player
            and self.effective_player_id is None
        )

    def _linked_or_effective(self) -> List[str]:
        if self.all_linked_player_ids:
            return list(self.all_linked_player_ids)
        if self.effective_player_id:
            return [self.effective_player_id]
        return []

    def player_ids_to_query(self) -> List[str]:
        """Players whose reservations/bookings the current view shows."""
        if self.viewing_as_player and self.selected_player_id:
            return [self.selected_player_id]
        return self._linked_or_effective()

    def all_linked_player_ids_for_availability(self) -> List[str]:
        """
        Every sibling, regardless of the view-as switch.

        A booking by any sibling takes the coach's slot for all of them, so
        availability checks must never narrow to the selected player.
        """
        return self._linked_or_effective()

    def player_id_for_action(self) -> str:
        if self.viewing_as_player and self.selected_player_id:
            return self.selected_player_id
        return self.effective_player_id or self.actual_user_id

    def user_id_for_profile(self) -> str:
        if self.viewing_as_player and self.selected_player_id:
            return self.selected_player_id
        if self.viewing_as_parent and self.is_player:
            return self.selected_player_id or self.actual_user_id
        return self.effective_player_id or self.actual_user_id

    def to_dict(self) -> dict:
        data = self.model_dump()
        data["all_linked_player_ids"] = list(self.all_linked_player_ids)
        data["needs_player_selection"] = self.needs_player_selection
        data["player_ids_to_query"] = self.player_ids_to_query()
        data["availability_player_ids"] = self.all_linked_player_ids_for_availability()
        data["player_id_for_action"] = self.player_id_for_action()
        data["user_id_for_profile"] = self.user_id_for_profile()
        return data
