# tests/test_persistence.py

import json

from tollgate_node.tollgate_runtime.atomic_store import AtomicStore
from tollgate_node.tollgate_runtime.results import ErrorKind


# ============================================================
# AtomicStore
# ============================================================

def test_save_and_load_roundtrip(tmp_path):
    store = AtomicStore(tmp_path)
    assert store.load() is None
    assert not store.path.exists()

    store.save({"content": {"next_id": 3}})

    assert store.path.exists()
    assert store.load() == {"content": {"next_id": 3}}
    assert not store.interrupted()


def test_backups_rotate_newest_first(tmp_path):
    store = AtomicStore(tmp_path, keep_backups=2)
    for n in range(1, 5):
        store.save({"n": n})

    assert json.loads(store.path.read_text()) == {"n": 4}
    assert json.loads(store.backup_path(1).read_text()) == {"n": 3}
    assert json.loads(store.backup_path(2).read_text()) == {"n": 2}
    assert not store.backup_path(3).exists()


def test_corrupt_primary_falls_back_to_backup(tmp_path):
    store = AtomicStore(tmp_path)
    store.save({"n": 1})
    store.save({"n": 2})
    store.path.write_text("{not json")

    assert store.load() == {"n": 1}


def test_interrupted_save_is_detected(tmp_path):
    store = AtomicStore(tmp_path)
    store.save({"n": 1})
    store.journal_path.write_bytes(b"1")

    assert store.interrupted()
    assert store.load() == {"n": 1}


# ============================================================
# Executor restarts
# ============================================================

def test_state_survives_restart(persistent_executor):
    ex = persistent_executor()
    ex.credit("@alice", 500)
    first = ex.create_content("@alice", "https://example.org/1").value
    ex.create_content("@alice", "https://example.org/2")
    ex.delete_content("@alice", 2)
    pid = ex.create_proposal("@alice", "persist me").value
    ex.vote("@alice", pid, True, 120)

    ex2 = persistent_executor()

    assert ex2.balance_of("@alice") == 500
    assert ex2.get_content("@alice", first).value.url == "https://example.org/1"
    assert ex2.get_content("@alice", 2).kind is ErrorKind.CONTENT_NOT_FOUND
    # retired ids stay retired across restarts
    assert ex2.create_content("@alice", "https://example.org/3").value == 3
    assert ex2.execute_proposal("@bob", pid).ok
    # event sequence numbers continue where the previous process stopped
    assert ex2.events.events()[0].seq == 6


def test_failed_operations_are_not_persisted(persistent_executor):
    ex = persistent_executor()
    ex.create_content("@alice", "https://example.org/1")
    saved = ex.store.snapshot()

    assert ex.delete_content("@bob", 1).kind is ErrorKind.UNAUTHORIZED

    assert persistent_executor().store.snapshot() == saved


def test_genesis_balances_are_seeded_once(persistent_executor):
    cfg = {"ledger": {"genesis_balances": {"@alice": 300}}}
    ex = persistent_executor(cfg)
    assert ex.balance_of("@alice") == 300
    ex.tip_user("@alice", "@bob", 100)

    ex2 = persistent_executor(cfg)
    assert ex2.balance_of("@alice") == 200
    assert ex2.balance_of("@bob") == 100
