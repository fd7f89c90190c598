"""
Account-context resolution.

Single place that turns (session, view-as role) into the effective parent /
player identities every data query is scoped to.

Rules:
- No active session -> None, and the backend is never touched
- Profile role is the truth; the view-as role only changes what we act as
- PLAYER viewing as PARENT: act as the player's parent, siblings included
- PARENT viewing as PLAYER: act as the selected child; if several children
  and none selected, the caller must ask (AmbiguousPlayerSelection)
- Parent lookups for players never raise: player-only accounts are normal
"""

from typing import Callable, List, Optional

from homegrown.common.errors import AmbiguousPlayerSelection, ProfileNotFound
from homegrown.common.logger import get_logger
from homegrown.identity.context import AccountContext, Session, ViewRole
from homegrown.identity.gate import BackendGate, GateState
from homegrown.persistence.backend import Backend

logger = get_logger(__name__)


class AccountContextResolver:
    def __init__(
        self,
        backend: Backend,
        gate: Optional[BackendGate] = None,
        ready_timeout: Optional[float] = None,
        session_provider: Optional[Callable[[], Optional[Session]]] = None,
        view_roles=None,
    ):
        self.backend = backend
        self.gate = gate
        self.ready_timeout = ready_timeout
        self.session_provider = session_provider
        self.view_roles = view_roles

    # ======================================================
    # Entry points
    # ======================================================

    def resolve_current(self) -> Optional[AccountContext]:
        """Resolve using the configured session provider and view-role store."""
        session = self.session_provider() if self.session_provider else None
        view_role = self.view_roles.load() if self.view_roles is not None else None
        return self.resolve(session, view_role)

    def resolve(
        self,
        session: Optional[Session],
        view_role: Optional[ViewRole] = None,
    ) -> Optional[AccountContext]:
        if session is None or not session.is_active():
            return None

        view_role = view_role or ViewRole()
        actual_user_id = session.user_id

        profile = self._fetch_profile(actual_user_id)
        if profile is False:
            return None
        if profile is None:
            logger.error(f"[identity] session user={actual_user_id} has no profile")
            raise ProfileNotFound(actual_user_id)

        is_player = profile.role == "player"
        is_parent = profile.role == "parent"
        viewing_as_parent = view_role.current_role == "parent"
        viewing_as_player = view_role.current_role == "player"
        requested = view_role.selected_player_id

        effective_parent_id = None
        effective_player_id = None
        linked: List[str] = []
        selected = None

        # ======================================================
        # PLAYER viewing as PARENT -> parent + all siblings
        # ======================================================
        if is_player and viewing_as_parent:
            parent_id = self._lookup_parent(actual_user_id)
            if parent_id:
                effective_parent_id = parent_id
                linked = self._linked_players(parent_id)
                if actual_user_id not in linked:
                    logger.warning(
                        f"[identity] parent={parent_id} sibling set missing player={actual_user_id}"
                    )
                    linked.append(actual_user_id)
            else:
                linked = [actual_user_id]
            selected = self._keep_if_linked(requested, linked)
            effective_player_id = selected or actual_user_id

        # ======================================================
        # PARENT viewing as PLAYER -> selected child
        # ======================================================
        elif is_parent and viewing_as_player:
            effective_parent_id = actual_user_id
            linked = self._linked_players(actual_user_id)
            selected = self._keep_if_linked(requested, linked)
            if selected:
                effective_player_id = selected
            elif len(linked) == 1:
                effective_player_id = linked[0]

        # ======================================================
        # PARENT as PARENT
        # ======================================================
        elif is_parent:
            effective_parent_id = actual_user_id
            linked = self._linked_players(actual_user_id)
            selected = self._keep_if_linked(requested, linked)

        # ======================================================
        # PLAYER as PLAYER -> self, parent only for write rules
        # ======================================================
        elif is_player:
            effective_player_id = actual_user_id
            linked = [actual_user_id]
            effective_parent_id = self._lookup_parent(actual_user_id)
            selected = self._keep_if_linked(requested, linked)

        context = AccountContext(
            actual_user_id=actual_user_id,
            actual_role=profile.role,
            effective_parent_id=effective_parent_id,
            effective_player_id=effective_player_id,
            all_linked_player_ids=tuple(linked),
            is_player=is_player,
            is_parent=is_parent,
            viewing_as_parent=viewing_as_parent,
            viewing_as_player=viewing_as_player,
            selected_player_id=selected,
        )

        if context.needs_player_selection and len(linked) > 1:
            logger.info(
                f"[identity] parent={actual_user_id} viewing as player without selection "
                f"({len(linked)} candidates)"
            )
            raise AmbiguousPlayerSelection(context, linked)

        return context

    # ======================================================
    # Backend access
    # ======================================================

    def _fetch_profile(self, user_id: str):
        """
        Profile row, None when missing, False when the backend never came up.
        """
        state = GateState.READY
        if self.gate is not None:
            state = self.gate.wait(self.ready_timeout)

        if state is GateState.READY:
            return self.backend.get_profile(user_id)

        # Not ready within the bound: try anyway, an unusable backend reads
        # as "not authenticated"
        try:
            return self.backend.get_profile(user_id)
        except Exception as exc:
            logger.warning(f"[identity] profile read failed on unready backend: {exc}")
            return False

    def _linked_players(self, parent_id: str) -> List[str]:
        player_ids = []
        for player_id in self.backend.query_relationships_by_parent(parent_id):
            if player_id not in player_ids:
                player_ids.append(player_id)
        return player_ids

    def _lookup_parent(self, player_id: str) -> Optional[str]:
        # "No parent" and "lookup failed" look the same from here; both are
        # treated as a player-only account
        try:
            return self.backend.privileged_lookup_parent_for_player(player_id)
        except Exception as exc:
            logger.debug(f"[identity] parent lookup for player={player_id} failed: {exc}")
            return None

    @staticmethod
    def _keep_if_linked(player_id: Optional[str], linked: List[str]) -> Optional[str]:
        if player_id and player_id in linked:
            return player_id
        if player_id:
            logger.info(f"[identity] ignoring stale selected player={player_id}")
        return None
