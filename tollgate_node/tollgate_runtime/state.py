from __future__ import annotations

"""
Single-writer state store.

All Tollgate state is one JSON-serialisable dict of namespaces:

    state["content"]     -> {"next_id": int, "records": {str(id): {...}}}
    state["governance"]  -> {"next_id": int, "proposals": {...}, "ballots": {...}}
    state["payments"]    -> {"subscriptions": {str(content_id): {subscriber: fee}}}
    state["profiles"]    -> {identity: {...}}
    state["balances"]    -> {identity: int}
    state["meta"]        -> {"event_seq": int}

Every public operation runs inside apply_atomic() (mutations) or read()
(queries), both under one re-entrant lock. No two operations interleave,
and readers only ever see committed state.
"""

import copy
import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional, TypeVar

from .atomic_store import AtomicStore
from .events import Event, EventSink
from .results import Ok, Result, TxError

log = logging.getLogger(__name__)

T = TypeVar("T")


def ensure_dict(parent: Dict[str, Any], key: str) -> Dict[str, Any]:
    obj = parent.setdefault(key, {})
    if not isinstance(obj, dict):
        parent[key] = {}
        obj = parent[key]
    return obj


def peek(state: Dict[str, Any], *keys: str) -> Dict[str, Any]:
    """Read-only counterpart of ensure_dict: walk nested namespaces without creating them."""
    obj: Any = state
    for key in keys:
        obj = obj.get(key) if isinstance(obj, dict) else None
        if not isinstance(obj, dict):
            return {}
    return obj


class Transaction:
    """
    Handle passed to runtime code for the duration of one operation.

    Mutations go straight into `state`; the store keeps a pre-transaction
    copy and restores it if the operation aborts.
    """

    def __init__(self, state: Dict[str, Any], actor: str, now: float) -> None:
        self.state = state
        self.actor = actor
        self.now = now
        self.staged: List[Dict[str, Any]] = []

    @property
    def now_ms(self) -> int:
        return int(self.now * 1000)

    def ns(self, key: str) -> Dict[str, Any]:
        return ensure_dict(self.state, key)

    def next_id(self, namespace: str) -> int:
        """Allocate the next id of a namespace counter (starts at 1, never reused)."""
        root = self.ns(namespace)
        nid = int(root.get("next_id", 1) or 1)
        root["next_id"] = nid + 1
        return nid

    def emit(self, action: str, subject_ids: List[Any], payload: Optional[Dict[str, Any]] = None) -> None:
        self.staged.append(
            {
                "action": action,
                "subject_ids": [str(s) for s in subject_ids],
                "actor": self.actor,
                "payload": dict(payload or {}),
                "ts_ms": self.now_ms,
            }
        )


class StateStore:
    def __init__(
        self,
        state: Optional[Dict[str, Any]] = None,
        *,
        persistence: Optional[AtomicStore] = None,
        sink: Optional[EventSink] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._state: Dict[str, Any] = state if isinstance(state, dict) else {}
        self._persistence = persistence
        self._sink = sink
        self._clock = clock
        self._lock = threading.RLock()
        self._in_tx = False

    @classmethod
    def open(
        cls,
        persistence: Optional[AtomicStore] = None,
        *,
        sink: Optional[EventSink] = None,
        clock: Callable[[], float] = time.time,
    ) -> "StateStore":
        state = persistence.load() if persistence is not None else None
        return cls(state or {}, persistence=persistence, sink=sink, clock=clock)

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @property
    def state(self) -> Dict[str, Any]:
        """Live state. Only touch it while holding `lock`."""
        return self._state

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._state)

    def is_empty(self) -> bool:
        with self._lock:
            return not self._state

    def read(self, fn: Callable[[Dict[str, Any]], T]) -> Result:
        with self._lock:
            try:
                return Ok(fn(self._state))
            except TxError as e:
                return e.to_err()

    def apply_atomic(self, fn: Callable[[Transaction], T], *, actor: str) -> Result:
        """
        Run fn as one indivisible transaction.

        TxError -> rollback, Err. Any other exception -> rollback, re-raise.
        """
        with self._lock:
            if self._in_tx:
                raise RuntimeError("nested transactions are not supported")
            self._in_tx = True
            before = copy.deepcopy(self._state)
            tx = Transaction(self._state, str(actor), self._clock())
            try:
                value = fn(tx)
                events = self._sequence(tx)
                if self._persistence is not None:
                    try:
                        self._persistence.save(self._state)
                    except OSError:
                        # Local state is rolled back below; transfers already made on an
                        # external ledger are not.
                        log.error(
                            "persist failed actor=%s, rolling back local state; uncommitted events=%s",
                            actor,
                            [(ev.action, ev.subject_ids, ev.payload) for ev in events],
                            exc_info=True,
                        )
                        raise
            except TxError as e:
                self._restore(before)
                log.debug("tx aborted actor=%s error=%s detail=%s", actor, e.kind.value, e.detail)
                return e.to_err()
            except Exception:
                self._restore(before)
                raise
            finally:
                self._in_tx = False

            for ev in events:
                log.debug("commit seq=%s action=%s actor=%s", ev.seq, ev.action, ev.actor)
                if self._sink is not None:
                    self._sink.emit(ev)
            return Ok(value)

    def _sequence(self, tx: Transaction) -> List[Event]:
        meta = tx.ns("meta")
        seq = int(meta.get("event_seq", 0) or 0)
        out: List[Event] = []
        for raw in tx.staged:
            seq += 1
            out.append(Event(seq=seq, **raw))
        meta["event_seq"] = seq
        return out

    def _restore(self, before: Dict[str, Any]) -> None:
        # Restore in place so holders of `state` keep a valid reference.
        self._state.clear()
        self._state.update(before)
