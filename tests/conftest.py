import os
import pathlib
import sys

import pytest

# Ensure repo root (containing the tollgate_node package) is on sys.path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from tollgate_node.config import deep_merge
from tollgate_node.executor import TollgateExecutor

IN_MEMORY = {"persistence": {"driver": "memory"}}

BALANCES = {"@alice": 1000, "@bob": 1000, "@carol": 50}


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep TOLLGATE_* variables from the outer shell out of the tests."""
    for name in list(os.environ):
        if name.startswith("TOLLGATE_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_executor(clock):
    """Factory: in-memory executor with optional config overrides."""

    def _make(overrides=None, **kwargs):
        kwargs.setdefault("clock", clock)
        return TollgateExecutor(deep_merge(IN_MEMORY, overrides), **kwargs)

    return _make


@pytest.fixture
def executor(make_executor):
    """Fresh in-memory executor with funded @alice, @bob and @carol."""
    ex = make_executor()
    for who, amount in BALANCES.items():
        assert ex.credit(who, amount).ok
    return ex


@pytest.fixture
def persistent_executor(tmp_path, clock):
    """Factory: executor persisting to tmp_path/data; call again to simulate a restart."""
    data_dir = tmp_path / "data"

    def _open(overrides=None):
        cfg = deep_merge({"persistence": {"driver": "json"}}, overrides)
        return TollgateExecutor(cfg, data_dir=str(data_dir), clock=clock)

    return _open
