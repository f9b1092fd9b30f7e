"""
Append-only event notifications.

Every committed mutation produces exactly one Event. Events are staged in
the transaction and only reach the sink after the commit succeeded, so a
sink never observes work that was rolled back.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Protocol, Tuple

from pydantic import BaseModel, Field

CONTENT_CREATED = "content-created"
CONTENT_UPDATED = "content-updated"
CONTENT_DELETED = "content-deleted"
ACCESS_GRANTED = "access-granted"
PROPOSAL_CREATED = "proposal-created"
VOTE_CAST = "vote-cast"
PROPOSAL_EXECUTED = "proposal-executed"
USER_TIPPED = "user-tipped"
SUBSCRIBED = "subscribed"
PROFILE_UPDATED = "profile-updated"


class Event(BaseModel):
    seq: int
    action: str
    subject_ids: List[str] = Field(default_factory=list)
    actor: str = ""
    payload: Dict[str, Any] = Field(default_factory=dict)
    ts_ms: int = 0


class EventSink(Protocol):
    def emit(self, event: Event) -> None:
        ...


class EventLog:
    """In-memory, ordered, append-only sink."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: List[Event] = []

    def emit(self, event: Event) -> None:
        with self._lock:
            if self._events and event.seq <= self._events[-1].seq:
                raise ValueError(f"event seq {event.seq} is not after {self._events[-1].seq}")
            self._events.append(event)

    def events(self) -> Tuple[Event, ...]:
        with self._lock:
            return tuple(self._events)

    def since(self, seq: int) -> Tuple[Event, ...]:
        with self._lock:
            return tuple(e for e in self._events if e.seq > int(seq))

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
