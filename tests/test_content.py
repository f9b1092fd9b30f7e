# tests/test_content.py

import copy

import pytest

from tollgate_node.tollgate_runtime.models import ContentRecord
from tollgate_node.tollgate_runtime.results import ErrorKind


def _content_state(ex):
    return copy.deepcopy(ex.store.state.get("content", {}))


def _create(ex, owner="@alice", url="https://example.org/a"):
    res = ex.create_content(owner, url)
    assert res.ok, res
    return res.value


# ============================================================
# Creation / ids
# ============================================================

def test_ids_start_at_one_and_strictly_increase(executor):
    ids = [_create(executor, url=f"https://example.org/{i}") for i in range(5)]
    assert ids == [1, 2, 3, 4, 5]


def test_deleted_ids_are_never_reassigned(executor):
    first = _create(executor)
    second = _create(executor)
    assert executor.delete_content("@alice", second).ok
    assert executor.delete_content("@alice", first).ok

    third = _create(executor)
    assert third == 3
    assert executor.get_content("@alice", first).kind is ErrorKind.CONTENT_NOT_FOUND


@pytest.mark.parametrize("url", ["", "x" * 257, "é" * 129, None, 42])
def test_create_rejects_bad_urls(executor, url):
    res = executor.create_content("@alice", url)
    assert not res.ok
    assert res.kind is ErrorKind.INVALID_INPUT
    assert res.code == 1010
    # a failed create must not burn an id
    assert _create(executor) == 1


def test_create_accepts_url_at_the_byte_limit(executor):
    cid = _create(executor, url="u" * 256)
    rec = executor.get_content("@alice", cid).value
    assert isinstance(rec, ContentRecord)
    assert rec.owner == "@alice"
    assert rec.access_list == []


# ============================================================
# Reads
# ============================================================

def test_owner_reads_and_strangers_are_denied(executor):
    cid = _create(executor)

    assert executor.get_content("@alice", cid).ok

    denied = executor.get_content("@bob", cid)
    assert denied.kind is ErrorKind.ACCESS_DENIED
    assert denied.code == 1005

    assert executor.grant_access("@alice", cid, "@bob").ok
    assert executor.get_content("@bob", cid).value.url == "https://example.org/a"


def test_missing_content_is_not_found(executor):
    res = executor.get_content("@alice", 99)
    assert res.kind is ErrorKind.CONTENT_NOT_FOUND
    assert res.code == 1003


def test_public_reads_when_gating_disabled(make_executor):
    ex = make_executor({"content": {"reads_are_gated": False}})
    cid = ex.create_content("@alice", "https://example.org/public").value
    assert ex.get_content("@anyone", cid).ok


def test_list_content_returns_only_owned_records(executor):
    _create(executor, "@alice")
    _create(executor, "@bob")
    _create(executor, "@alice")
    owned = executor.list_content("@alice").value
    assert [r.id for r in owned] == [1, 3]


# ============================================================
# Ownership guard
# ============================================================

@pytest.mark.parametrize(
    "op",
    [
        lambda ex, cid: ex.update_content("@mallory", cid, "https://evil.example", ["@mallory"]),
        lambda ex, cid: ex.delete_content("@mallory", cid),
        lambda ex, cid: ex.grant_access("@mallory", cid, "@mallory"),
        # bad input from a non-owner is still reported as unauthorized
        lambda ex, cid: ex.update_content("@mallory", cid, "", ["x"] * 500),
    ],
)
def test_non_owner_mutations_are_unauthorized_and_change_nothing(executor, op):
    cid = _create(executor)
    assert executor.grant_access("@alice", cid, "@bob").ok
    before = _content_state(executor)
    seen = len(executor.events)

    res = op(executor, cid)

    assert res.kind is ErrorKind.UNAUTHORIZED
    assert res.code == 1004
    assert _content_state(executor) == before
    assert len(executor.events) == seen


def test_not_found_is_reported_before_unauthorized(executor):
    res = executor.update_content("@mallory", 7, "https://example.org", [])
    assert res.kind is ErrorKind.CONTENT_NOT_FOUND


# ============================================================
# Update / delete
# ============================================================

def test_update_replaces_url_and_access_list_wholesale(executor):
    cid = _create(executor)
    executor.grant_access("@alice", cid, "@bob")

    assert executor.update_content("@alice", cid, "https://example.org/b", ["@carol", "@dave"]).ok

    rec = executor.get_content("@alice", cid).value
    assert rec.url == "https://example.org/b"
    assert rec.access_list == ["@carol", "@dave"]
    assert executor.get_content("@bob", cid).kind is ErrorKind.ACCESS_DENIED


@pytest.mark.parametrize(
    "url,acl",
    [
        ("", []),
        ("https://example.org", [f"@u{i}" for i in range(101)]),
        ("https://example.org", ["@ok", ""]),
        ("https://example.org", "@not-a-list"),
    ],
)
def test_owner_update_with_invalid_input_changes_nothing(executor, url, acl):
    cid = _create(executor)
    before = _content_state(executor)

    res = executor.update_content("@alice", cid, url, acl)

    assert res.kind is ErrorKind.INVALID_INPUT
    assert _content_state(executor) == before


def test_update_accepts_a_full_access_list(executor):
    cid = _create(executor)
    acl = [f"@u{i}" for i in range(100)]
    assert executor.update_content("@alice", cid, "https://example.org", acl).ok
    assert executor.grant_access("@alice", cid, "@one-more").kind is ErrorKind.LIST_FULL


def test_delete_removes_the_record(executor):
    cid = _create(executor)
    assert executor.delete_content("@alice", cid).ok
    assert executor.get_content("@alice", cid).kind is ErrorKind.CONTENT_NOT_FOUND
    assert executor.delete_content("@alice", cid).kind is ErrorKind.CONTENT_NOT_FOUND
    assert executor.grant_access("@alice", cid, "@bob").kind is ErrorKind.CONTENT_NOT_FOUND


# ============================================================
# Access list capacity
# ============================================================

def test_hundred_grants_succeed_and_the_next_is_list_full(executor):
    cid = _create(executor)
    for i in range(100):
        res = executor.grant_access("@alice", cid, f"@user{i}")
        assert res.ok
        assert res.value == i + 1

    full = executor.grant_access("@alice", cid, "@user100")
    assert full.kind is ErrorKind.LIST_FULL
    assert full.code == 1005
    assert len(executor.get_content("@alice", cid).value.access_list) == 100


def test_grant_does_not_deduplicate(executor):
    cid = _create(executor)
    executor.grant_access("@alice", cid, "@bob")
    executor.grant_access("@alice", cid, "@bob")
    assert executor.get_content("@alice", cid).value.access_list == ["@bob", "@bob"]


def test_grant_requires_an_identity(executor):
    cid = _create(executor)
    assert executor.grant_access("@alice", cid, "").kind is ErrorKind.INVALID_INPUT


# ============================================================
# Events
# ============================================================

def test_each_successful_mutation_emits_one_event(executor):
    cid = _create(executor)
    executor.grant_access("@alice", cid, "@bob")
    executor.update_content("@alice", cid, "https://example.org/c", [])
    executor.delete_content("@alice", cid)
    executor.delete_content("@alice", cid)  # fails, no event

    evs = executor.events.events()
    assert [e.action for e in evs] == [
        "content-created",
        "access-granted",
        "content-updated",
        "content-deleted",
    ]
    assert [e.seq for e in evs] == [1, 2, 3, 4]
    assert all(e.actor == "@alice" for e in evs)
    assert evs[1].subject_ids == [str(cid), "@bob"]
