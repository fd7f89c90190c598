"""
Sidebar profile photo.

Only player accounts have photos. Whenever the view-as role changes the
presenter re-resolves the account context and shows either the effective
player's avatar or the placeholder icon. "No avatar uploaded yet" is the
normal placeholder case, not an error.
"""

import time
from typing import Callable, List, Optional

from homegrown.common.errors import AmbiguousPlayerSelection, ProfileNotFound
from homegrown.common.logger import get_logger
from homegrown.identity.context import AccountContext

logger = get_logger(__name__)

PREFERRED_AVATAR = "avatar.png"


def photo_owner(context: Optional[AccountContext]) -> Optional[str]:
    """Whose avatar belongs in the sidebar, or None for the placeholder."""
    if context is None:
        return None
    if context.viewing_as_player and context.selected_player_id:
        return context.selected_player_id
    if context.is_player and not context.viewing_as_parent:
        return context.actual_user_id
    if context.is_parent and context.viewing_as_player:
        return context.effective_player_id
    if context.is_player:
        return context.actual_user_id
    # parents, coaches and admins have no photo
    return None


def pick_avatar(names: List[str]) -> Optional[str]:
    for name in names:
        if name.lower() == PREFERRED_AVATAR:
            return name
    for name in names:
        if name.lower().startswith("avatar."):
            return name
    return None


class SidebarPhotoPresenter:
    def __init__(
        self,
        resolve: Callable[[], Optional[AccountContext]],
        backend,
        view=None,
        clock: Callable[[], float] = time.time,
    ):
        self.resolve = resolve
        self.backend = backend
        self.view = view
        self.clock = clock
        self.photo_url: Optional[str] = None

    def bind(self, view_roles) -> Callable[[], None]:
        """Re-run on every view-role change; returns the unsubscribe hook."""
        return view_roles.subscribe(lambda _view_role: self.refresh())

    def refresh(self) -> Optional[str]:
        try:
            context = self.resolve()
        except AmbiguousPlayerSelection as exc:
            context = exc.context
        except ProfileNotFound:
            # integrity fault, not a "no photo" state
            raise
        except Exception as exc:
            logger.error(f"[sidebar-photo] resolving account context failed: {exc}")
            return self._show_placeholder()
        return self.present(context)

    def present(self, context: Optional[AccountContext]) -> Optional[str]:
        owner = photo_owner(context)
        if not owner:
            return self._show_placeholder()

        try:
            profile = self.backend.get_profile(owner)
            if profile is None or profile.role != "player":
                return self._show_placeholder()

            avatar = pick_avatar(self.backend.list_avatar_files(owner))
            if avatar is None:
                return self._show_placeholder()

            public_url = self.backend.get_public_url(f"{owner}/{avatar}")
        except Exception as exc:
            logger.error(f"[sidebar-photo] loading photo for {owner} failed: {exc}")
            return self._show_placeholder()

        return self._show_photo(f"{public_url}?t={int(self.clock() * 1000)}")

    def push_photo_url(self, url: str) -> str:
        """Fresh upload: show it straight away, no resolution round-trip."""
        return self._show_photo(url)

    def _show_photo(self, url: str) -> str:
        self.photo_url = url
        if self.view is not None:
            self.view.show_photo(url)
        return url

    def _show_placeholder(self) -> None:
        self.photo_url = None
        if self.view is not None:
            self.view.show_placeholder()
        return None
