from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ContentRecord(BaseModel):
    id: int
    owner: str
    url: str
    access_list: List[str] = Field(default_factory=list)
    created_at_ms: int = 0
    updated_at_ms: int = 0

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "ContentRecord":
        return cls(
            id=int(raw["id"]),
            owner=str(raw["owner"]),
            url=str(raw.get("url", "")),
            access_list=[str(x) for x in raw.get("access_list", [])],
            created_at_ms=int(raw.get("created_at_ms", 0) or 0),
            updated_at_ms=int(raw.get("updated_at_ms", 0) or 0),
        )


class Proposal(BaseModel):
    id: int
    proposer: str
    description: str
    votes_for: int = 0
    votes_against: int = 0
    executed: bool = False
    created_at: int = 0
    closes_at: Optional[int] = None
    executed_at: Optional[int] = None

    @property
    def total_votes(self) -> int:
        return self.votes_for + self.votes_against

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "Proposal":
        return cls(
            id=int(raw["id"]),
            proposer=str(raw["proposer"]),
            description=str(raw.get("description", "")),
            votes_for=int(raw.get("votes_for", 0) or 0),
            votes_against=int(raw.get("votes_against", 0) or 0),
            executed=bool(raw.get("executed", False)),
            created_at=int(raw.get("created_at", 0) or 0),
            closes_at=raw.get("closes_at"),
            executed_at=raw.get("executed_at"),
        )


class Profile(BaseModel):
    owner: str
    username: str
    bio: str = ""
    updated_at_ms: int = 0

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "Profile":
        return cls(
            owner=str(raw["owner"]),
            username=str(raw.get("username", "")),
            bio=str(raw.get("bio", "")),
            updated_at_ms=int(raw.get("updated_at_ms", 0) or 0),
        )
