"""
Account context API.

The view-as role lives on the client; every request carries it in the
X-View-Role / X-Selected-Player-Id headers and the context is resolved fresh
each time.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Header, HTTPException, UploadFile
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session as DbSession

from homegrown.common.auth import get_session
from homegrown.common.errors import AmbiguousPlayerSelection, ProfileNotFound
from homegrown.common.logger import get_logger
from homegrown.identity.context import (
    ROLE_KEY,
    SELECTED_PLAYER_KEY,
    AccountContext,
    Session,
    ViewRole,
)
from homegrown.identity.resolver import AccountContextResolver
from homegrown.identity.sidebar_photo import SidebarPhotoPresenter, photo_owner
from homegrown.persistence.backend import SqlBackend
from homegrown.persistence.bootstrap import backend_gate
from homegrown.persistence.session import get_db
from homegrown.persistence.storage import AvatarStorage

router = APIRouter(prefix="/account", tags=["account"])

logger = get_logger(__name__)

_storage: Optional[AvatarStorage] = None


# ---------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------

def get_storage() -> AvatarStorage:
    global _storage
    if _storage is None:
        _storage = AvatarStorage()
    return _storage


def get_backend(
    db: DbSession = Depends(get_db),
    storage: AvatarStorage = Depends(get_storage),
) -> SqlBackend:
    return SqlBackend(db, storage=storage)


def get_resolver(backend: SqlBackend = Depends(get_backend)) -> AccountContextResolver:
    return AccountContextResolver(backend, gate=backend_gate)


def get_view_role(
    x_view_role: Optional[str] = Header(None),
    x_selected_player_id: Optional[str] = Header(None),
) -> ViewRole:
    storage = {}
    if x_view_role:
        storage[ROLE_KEY] = x_view_role.strip().lower()
    if x_selected_player_id:
        storage[SELECTED_PLAYER_KEY] = x_selected_player_id.strip()
    return ViewRole.from_storage(storage)


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def _resolve(
    resolver: AccountContextResolver,
    session: Optional[Session],
    view_role: ViewRole,
) -> AccountContext:
    try:
        context = resolver.resolve(session, view_role)
    except ProfileNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except AmbiguousPlayerSelection as exc:
        raise HTTPException(
            status_code=409,
            detail={
                "message": str(exc),
                "candidate_player_ids": exc.candidate_player_ids,
            },
        )

    if context is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return context


def _account_entry(backend: SqlBackend, user_id: str) -> Optional[dict]:
    profile = backend.get_profile(user_id)
    if profile is None:
        return None
    return {
        "id": profile.id,
        "role": profile.role,
        "name": profile.display_name,
    }


def _family(resolver: AccountContextResolver, session: Optional[Session]):
    """(context, parent_id or None, player ids) the caller may view as."""
    context = _resolve(resolver, session, ViewRole(current_role="parent"))
    if context.is_parent:
        return context, context.actual_user_id, list(context.all_linked_player_ids)
    if context.is_player:
        return context, context.effective_parent_id, list(context.all_linked_player_ids)
    return context, None, []


# ---------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------

class SwitchRequest(BaseModel):
    role: str = Field(..., pattern="^(parent|player)$")
    player_id: Optional[str] = None


# ---------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------

@router.get("/context")
def get_account_context(
    session: Optional[Session] = Depends(get_session),
    view_role: ViewRole = Depends(get_view_role),
    resolver: AccountContextResolver = Depends(get_resolver),
):
    return _resolve(resolver, session, view_role).to_dict()


@router.get("/switchable-accounts")
def list_switchable_accounts(
    session: Optional[Session] = Depends(get_session),
    resolver: AccountContextResolver = Depends(get_resolver),
):
    _, parent_id, player_ids = _family(resolver, session)

    accounts = []
    if parent_id:
        entry = _account_entry(resolver.backend, parent_id)
        if entry:
            accounts.append(entry)
    for player_id in player_ids:
        entry = _account_entry(resolver.backend, player_id)
        if entry:
            accounts.append(entry)

    return {"accounts": accounts}


@router.post("/switch")
def switch_account(
    payload: SwitchRequest,
    session: Optional[Session] = Depends(get_session),
    resolver: AccountContextResolver = Depends(get_resolver),
):
    family, parent_id, player_ids = _family(resolver, session)

    if payload.role == "parent":
        if not parent_id:
            raise HTTPException(status_code=400, detail="No parent account linked")
        player_id = None
    elif family.is_player:
        # a player account can only ever view as itself
        player_id = payload.player_id or family.actual_user_id
        if player_id != family.actual_user_id:
            raise HTTPException(status_code=400, detail="Player accounts can only view as themselves")
    else:
        player_id = payload.player_id
        if player_id is None and len(player_ids) == 1:
            player_id = player_ids[0]
        if player_id not in player_ids:
            raise HTTPException(status_code=400, detail="Player is not linked to this account")

    view_role = ViewRole(current_role=payload.role, selected_player_id=player_id)
    context = _resolve(resolver, session, view_role)

    logger.info(
        f"[account] user={context.actual_user_id} switched to role={payload.role} player={player_id}"
    )

    return {
        "storage": {
            ROLE_KEY: payload.role,
            SELECTED_PLAYER_KEY: player_id,
        },
        "context": context.to_dict(),
    }


@router.get("/sidebar-photo")
def get_sidebar_photo(
    session: Optional[Session] = Depends(get_session),
    view_role: ViewRole = Depends(get_view_role),
    resolver: AccountContextResolver = Depends(get_resolver),
):
    if session is None or not session.is_active():
        raise HTTPException(status_code=401, detail="Not authenticated")

    presenter = SidebarPhotoPresenter(
        lambda: resolver.resolve(session, view_role),
        resolver.backend,
    )
    try:
        photo_url = presenter.refresh()
    except ProfileNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return {"photo_url": photo_url}


@router.post("/avatar", status_code=201)
def upload_avatar(
    file: UploadFile = File(...),
    session: Optional[Session] = Depends(get_session),
    view_role: ViewRole = Depends(get_view_role),
    resolver: AccountContextResolver = Depends(get_resolver),
    storage: AvatarStorage = Depends(get_storage),
):
    context = _resolve(resolver, session, view_role)

    owner = photo_owner(context)
    if not owner:
        raise HTTPException(status_code=400, detail="Only player accounts have photos")

    try:
        object_key = storage.upload_avatar(owner, file.file, file.filename or "", file.content_type)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    presenter = SidebarPhotoPresenter(lambda: context, resolver.backend)
    url = presenter.push_photo_url(
        f"{resolver.backend.get_public_url(object_key)}?t={int(presenter.clock() * 1000)}"
    )

    return {"player_id": owner, "photo_url": url}
