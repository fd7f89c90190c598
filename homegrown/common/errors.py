"""
Failure kinds surfaced by account-context resolution.

A missing session is not an exception: the resolver returns ``None``.
"""

from typing import Sequence


class AccountContextError(Exception):
    """Base class for resolution failures callers must react to."""


class ProfileNotFound(AccountContextError):
    """Valid session but no profile row: an upstream data problem."""

    def __init__(self, user_id: str):
        super().__init__(f"No profile for user {user_id}")
        self.user_id = user_id


class AmbiguousPlayerSelection(AccountContextError):
    """
    Parent is viewing as a player but has not picked which child.

    Carries the partially resolved context so callers can still render the
    player picker from ``candidate_player_ids``.
    """

    def __init__(self, context, candidate_player_ids: Sequence[str]):
        super().__init__("Select a player to continue")
        self.context = context
        self.candidate_player_ids = list(candidate_player_ids)


class RelationshipLookupFailed(Exception):
    """Raised by backends when the parent lookup itself errors out."""
