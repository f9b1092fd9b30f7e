from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping

from . import events
from .models import Profile
from .results import ErrorKind, require, require_bounded_text
from .state import Transaction, peek

DEFAULT_USERNAME_MAX_BYTES = 32
DEFAULT_BIO_MAX_BYTES = 256


@dataclass(frozen=True)
class ProfileParams:
    username_max_bytes: int = DEFAULT_USERNAME_MAX_BYTES
    bio_max_bytes: int = DEFAULT_BIO_MAX_BYTES

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "ProfileParams":
        section = dict((cfg or {}).get("profiles", {}) or {})
        return cls(
            username_max_bytes=int(section.get("username_max_bytes", DEFAULT_USERNAME_MAX_BYTES)),
            bio_max_bytes=int(section.get("bio_max_bytes", DEFAULT_BIO_MAX_BYTES)),
        )


class ProfileBook:
    """One profile per identity, created or replaced by its owner."""

    def __init__(self, params: ProfileParams | None = None) -> None:
        self.params = params or ProfileParams()

    def set(self, tx: Transaction, caller: str, username: Any, bio: Any) -> None:
        username = require_bounded_text(username, self.params.username_max_bytes, "username")
        bio = require_bounded_text(bio, self.params.bio_max_bytes, "bio", allow_empty=True)

        tx.ns("profiles")[caller] = {
            "owner": caller,
            "username": username,
            "bio": bio,
            "updated_at_ms": tx.now_ms,
        }
        tx.emit(events.PROFILE_UPDATED, [caller], {"username": username})

    def get(self, state: Dict[str, Any], identity: str) -> Profile:
        raw = peek(state, "profiles").get(identity)
        require(isinstance(raw, dict), ErrorKind.PROFILE_NOT_FOUND, f"no profile for {identity}")
        return Profile.from_raw(raw)
