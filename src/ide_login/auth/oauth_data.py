"""
Credential records for ide-login.

OAuthData is the immutable snapshot of a user's stored OAuth state that moves
between the login state and its credential store.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional


@dataclass(frozen=True)
class OAuthData:
    """Stored OAuth state of a single user.

    ``stored_scopes`` is never None: passing None yields an empty set.
    Strings are kept exactly as given, so an empty string stays an empty
    string here. ``access_token_expiry_time`` is in epoch seconds, with 0
    meaning the expiry is unknown.
    """

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    stored_email: Optional[str] = None
    stored_scopes: FrozenSet[str] = field(default_factory=frozenset)
    access_token_expiry_time: int = 0

    def __post_init__(self) -> None:
        scopes = self.stored_scopes
        object.__setattr__(
            self, "stored_scopes", frozenset(scopes) if scopes is not None else frozenset()
        )


@dataclass(frozen=True)
class VerificationCodeHolder:
    """A verification code together with the redirect URL it was issued for."""

    verification_code: str
    redirect_url: str
