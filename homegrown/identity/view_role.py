"""
Client-side "view as" state.

Backed by any string key/value mapping (the browser's local storage on the
client, a dict in process). Listeners are told about every change so
consumers re-resolve instead of holding on to a stale context.
"""

from typing import Callable, List, MutableMapping, Optional

from homegrown.common.logger import get_logger
from homegrown.identity.context import (
    ROLE_KEY,
    SELECTED_PLAYER_KEY,
    THEME_KEY,
    VIEW_ROLE_KEYS,
    ViewRole,
)

logger = get_logger(__name__)

Listener = Callable[[ViewRole], None]

SWITCHABLE_ROLES = ("parent", "player")


class ViewRoleStore:
    def __init__(self, storage: Optional[MutableMapping[str, str]] = None):
        self.storage = storage if storage is not None else {}
        self._listeners: List[Listener] = []

    def load(self) -> ViewRole:
        return ViewRole.from_storage(self.storage)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def switch_to(self, role: str, player_id: Optional[str] = None) -> ViewRole:
        """
        Account switcher action.

        Switching to a player records which child; switching to the parent
        forgets it.
        """
        if role not in SWITCHABLE_ROLES:
            raise ValueError(f"Cannot switch view to role {role!r}")
        if role == "player" and player_id:
            self.storage[SELECTED_PLAYER_KEY] = player_id
        elif role == "parent":
            self.storage.pop(SELECTED_PLAYER_KEY, None)

        self.storage[ROLE_KEY] = role
        logger.info(f"[view-role] switched to role={role} player={player_id}")
        return self._notify()

    def notify_external_change(self, key: Optional[str]) -> Optional[ViewRole]:
        """
        Hook for storage changes made by another tab.

        Only the role keys matter; ``None`` means the whole storage was cleared.
        """
        if key is not None and key not in VIEW_ROLE_KEYS:
            return None
        return self._notify()

    def clear(self) -> None:
        """Logout: drop everything except the theme preference."""
        theme = self.storage.get(THEME_KEY)
        self.storage.clear()
        if theme:
            self.storage[THEME_KEY] = theme
        self._notify()

    def _notify(self) -> ViewRole:
        view_role = self.load()
        for listener in list(self._listeners):
            listener(view_role)
        return view_role
