import pytest

from homegrown.common.errors import ProfileNotFound
from homegrown.identity.context import Session
from homegrown.identity.resolver import AccountContextResolver
from homegrown.identity.sidebar_photo import (
    SidebarPhotoPresenter,
    photo_owner,
    pick_avatar,
)
from homegrown.identity.view_role import ViewRoleStore


class RecordingView:
    def __init__(self):
        self.events = []

    def show_photo(self, url):
        self.events.append(("photo", url))

    def show_placeholder(self):
        self.events.append(("placeholder", None))


def _presenter(backend, user_id, store=None, view=None):
    store = store or ViewRoleStore()
    resolver = AccountContextResolver(
        backend,
        session_provider=lambda: Session(user_id=user_id),
        view_roles=store,
    )
    presenter = SidebarPhotoPresenter(
        resolver.resolve_current,
        backend,
        view=view,
        clock=lambda: 1700000000.5,
    )
    return presenter, store


def test_pick_avatar_prefers_png():
    assert pick_avatar(["avatar.jpg", "notes.txt", "AVATAR.PNG"]) == "AVATAR.PNG"
    assert pick_avatar(["banner.png", "avatar.jpeg"]) == "avatar.jpeg"
    assert pick_avatar(["banner.png"]) is None
    assert pick_avatar([]) is None


def test_player_sees_own_photo_with_cache_buster(backend):
    backend.avatars["P1"] = ["avatar.jpg", "avatar.png"]
    presenter, _ = _presenter(backend, "P1")

    url = presenter.refresh()

    assert url == "https://cdn.test/profile-photos/P1/avatar.png?t=1700000000500"
    assert presenter.photo_url == url


def test_parent_gets_placeholder_without_fetching(backend):
    view = RecordingView()
    presenter, _ = _presenter(backend, "A", view=view)

    assert presenter.refresh() is None
    assert view.events == [("placeholder", None)]
    assert ("list_avatar_files", "A") not in backend.calls


def test_player_without_upload_gets_placeholder(backend):
    presenter, _ = _presenter(backend, "SOLO")
    assert presenter.refresh() is None


def test_player_viewing_as_parent_keeps_own_photo(backend):
    backend.avatars["P1"] = ["avatar.png"]
    presenter, store = _presenter(backend, "P1")
    store.switch_to("parent")

    assert presenter.refresh().startswith("https://cdn.test/profile-photos/P1/avatar.png")


def test_rebinds_on_account_switch(backend):
    backend.avatars["P2"] = ["avatar.gif"]
    view = RecordingView()
    presenter, store = _presenter(backend, "A", view=view)
    presenter.bind(store)

    store.switch_to("player", "P2")
    assert presenter.photo_url == "https://cdn.test/profile-photos/P2/avatar.gif?t=1700000000500"

    store.switch_to("parent")
    assert presenter.photo_url is None
    assert [kind for kind, _ in view.events] == ["photo", "placeholder"]


def test_cross_tab_change_triggers_refresh(backend):
    backend.avatars["P1"] = ["avatar.png"]
    presenter, store = _presenter(backend, "A")
    presenter.bind(store)

    store.storage["hg-user-role"] = "player"
    store.storage["selectedPlayerId"] = "P1"
    store.notify_external_change("selectedPlayerId")

    assert presenter.photo_url.startswith("https://cdn.test/profile-photos/P1/")


def test_parent_viewing_as_player_without_choice_gets_placeholder(backend):
    presenter, store = _presenter(backend, "A")
    store.storage["hg-user-role"] = "player"

    assert presenter.refresh() is None


def test_pushed_url_skips_resolution(backend):
    presenter, _ = _presenter(backend, "P1")
    backend.calls.clear()

    url = presenter.push_photo_url("https://cdn.test/profile-photos/P1/avatar.png?t=1")

    assert presenter.photo_url == url
    assert backend.calls == []


def test_resolution_failure_falls_back_to_placeholder(backend):
    view = RecordingView()

    def broken():
        raise RuntimeError("network down")

    presenter = SidebarPhotoPresenter(broken, backend, view=view)

    assert presenter.refresh() is None
    assert view.events == [("placeholder", None)]


def test_missing_profile_is_not_a_placeholder(backend):
    view = RecordingView()
    presenter, _ = _presenter(backend, "ghost", view=view)

    with pytest.raises(ProfileNotFound):
        presenter.refresh()
    assert view.events == []


def test_owner_is_none_when_logged_out():
    assert photo_owner(None) is None
