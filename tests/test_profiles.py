import pytest

from tollgate_node.tollgate_runtime.results import ErrorKind


def test_set_and_get_profile(executor):
    assert executor.set_profile("@alice", "alice", "builds things").ok
    p = executor.get_profile("@alice").value
    assert (p.owner, p.username, p.bio) == ("@alice", "alice", "builds things")


def test_set_profile_is_create_or_update(executor):
    executor.set_profile("@alice", "alice", "v1")
    executor.set_profile("@alice", "alice2", "")
    p = executor.get_profile("@alice").value
    assert p.username == "alice2"
    assert p.bio == ""
    assert [e.action for e in executor.events.events()] == ["profile-updated", "profile-updated"]


def test_missing_profile(executor):
    res = executor.get_profile("@ghost")
    assert res.kind is ErrorKind.PROFILE_NOT_FOUND
    assert res.code == 1002


@pytest.mark.parametrize(
    "username,bio",
    [("", "bio"), ("u" * 33, ""), ("ok", "b" * 257), ("ok", None)],
)
def test_profile_bounds(executor, username, bio):
    res = executor.set_profile("@alice", username, bio)
    assert res.kind is ErrorKind.INVALID_INPUT
    assert executor.get_profile("@alice").kind is ErrorKind.PROFILE_NOT_FOUND
