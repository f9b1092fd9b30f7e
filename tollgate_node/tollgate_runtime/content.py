"""
tollgate_node/tollgate_runtime/content.py
-----------------------------------------

Content registry: owner-guarded records with a bounded access list.

Records live under:

    state["content"]["records"][str(id)] = {
        "id": int,
        "owner": identity,
        "url": str,
        "access_list": [identity, ...],
        "created_at_ms": int,
        "updated_at_ms": int,
    }

Ids come from state["content"]["next_id"], start at 1, and are never
handed out again, even after the record is deleted.

Every owner-gated mutator resolves the record through owned_record()
before it validates input or writes anything.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

from . import events
from .models import ContentRecord
from .results import ErrorKind, require, require_bounded_text
from .state import Transaction, ensure_dict, peek

log = logging.getLogger(__name__)

DEFAULT_URL_MAX_BYTES = 256
DEFAULT_ACL_CAPACITY = 100


@dataclass(frozen=True)
class ContentParams:
    url_max_bytes: int = DEFAULT_URL_MAX_BYTES
    acl_capacity: int = DEFAULT_ACL_CAPACITY
    reads_are_gated: bool = True

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "ContentParams":
        section = dict((cfg or {}).get("content", {}) or {})
        return cls(
            url_max_bytes=int(section.get("url_max_bytes", DEFAULT_URL_MAX_BYTES)),
            acl_capacity=int(section.get("acl_capacity", DEFAULT_ACL_CAPACITY)),
            reads_are_gated=bool(section.get("reads_are_gated", True)),
        )


def records(state: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    return peek(state, "content", "records")


def find_record(state: Dict[str, Any], content_id: Any) -> Dict[str, Any]:
    rec = records(state).get(str(content_id))
    require(isinstance(rec, dict), ErrorKind.CONTENT_NOT_FOUND, f"content {content_id} not found")
    return rec


def owned_record(state: Dict[str, Any], content_id: Any, caller: str) -> Dict[str, Any]:
    """Resolve a record and check that `caller` owns it (not found before unauthorized)."""
    rec = find_record(state, content_id)
    require(rec.get("owner") == caller, ErrorKind.UNAUTHORIZED, f"{caller} does not own content {content_id}")
    return rec


def can_read(rec: Dict[str, Any], caller: str) -> bool:
    return rec.get("owner") == caller or caller in rec.get("access_list", [])


class ContentRegistry:
    def __init__(self, params: ContentParams | None = None) -> None:
        self.params = params or ContentParams()

    def _validate_url(self, url: Any) -> str:
        return require_bounded_text(url, self.params.url_max_bytes, "url")

    def _validate_access_list(self, access_list: Any) -> List[str]:
        require(
            isinstance(access_list, (list, tuple)),
            ErrorKind.INVALID_INPUT,
            "access_list must be a list",
        )
        require(
            len(access_list) <= self.params.acl_capacity,
            ErrorKind.INVALID_INPUT,
            f"access_list holds at most {self.params.acl_capacity} identities",
        )
        for identity in access_list:
            require(
                isinstance(identity, str) and bool(identity),
                ErrorKind.INVALID_INPUT,
                "access_list entries must be non-empty identities",
            )
        return list(access_list)

    # ------------------------------------------------------------------
    # Mutations (run inside StateStore.apply_atomic)
    # ------------------------------------------------------------------

    def create(self, tx: Transaction, caller: str, url: Any) -> int:
        url = self._validate_url(url)

        cid = tx.next_id("content")
        ensure_dict(tx.ns("content"), "records")[str(cid)] = {
            "id": cid,
            "owner": caller,
            "url": url,
            "access_list": [],
            "created_at_ms": tx.now_ms,
            "updated_at_ms": tx.now_ms,
        }
        tx.emit(events.CONTENT_CREATED, [cid], {"url": url})
        return cid

    def update(self, tx: Transaction, caller: str, content_id: Any, url: Any, access_list: Any) -> None:
        rec = owned_record(tx.state, content_id, caller)
        url = self._validate_url(url)
        acl = self._validate_access_list(access_list)

        # Wholesale replace, not a merge.
        rec["url"] = url
        rec["access_list"] = acl
        rec["updated_at_ms"] = tx.now_ms
        tx.emit(events.CONTENT_UPDATED, [rec["id"]], {"url": url, "access_list": list(acl)})

    def delete(self, tx: Transaction, caller: str, content_id: Any) -> None:
        rec = owned_record(tx.state, content_id, caller)
        del records(tx.state)[str(rec["id"])]
        tx.emit(events.CONTENT_DELETED, [rec["id"]])

    def grant(self, tx: Transaction, caller: str, content_id: Any, identity: Any) -> int:
        rec = owned_record(tx.state, content_id, caller)
        require(
            isinstance(identity, str) and bool(identity),
            ErrorKind.INVALID_INPUT,
            "identity is required",
        )

        acl = rec.setdefault("access_list", [])
        require(
            len(acl) < self.params.acl_capacity,
            ErrorKind.LIST_FULL,
            f"access list of content {rec['id']} is full",
        )

        # No deduplication: granting the same identity twice uses two slots.
        acl.append(identity)
        rec["updated_at_ms"] = tx.now_ms
        tx.emit(events.ACCESS_GRANTED, [rec["id"], identity], {"size": len(acl)})
        return len(acl)

    # ------------------------------------------------------------------
    # Queries (run inside StateStore.read)
    # ------------------------------------------------------------------

    def get(self, state: Dict[str, Any], caller: str, content_id: Any) -> ContentRecord:
        rec = find_record(state, content_id)
        if self.params.reads_are_gated:
            require(can_read(rec, caller), ErrorKind.ACCESS_DENIED, f"{caller} may not read content {content_id}")
        return ContentRecord.from_raw(rec)

    def list_owned(self, state: Dict[str, Any], owner: str) -> List[ContentRecord]:
        out = [ContentRecord.from_raw(r) for r in records(state).values() if r.get("owner") == owner]
        return sorted(out, key=lambda r: r.id)
