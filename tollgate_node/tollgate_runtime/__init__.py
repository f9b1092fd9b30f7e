# tollgate_node/tollgate_runtime/__init__.py
from __future__ import annotations

"""
Tollgate runtime package (lazy import)

Nothing is imported at package import time; submodules are resolved on
first attribute access via __getattr__ (PEP 562).
"""

from importlib import import_module
from typing import Any

__all__ = [
    "results",
    "atomic_store",
    "state",
    "events",
    "models",
    "token_ledger",
    "content",
    "governance",
    "payments",
    "profiles",
]

_LAZY_MAP = {name: f"tollgate_node.tollgate_runtime.{name}" for name in __all__}


def __getattr__(name: str) -> Any:
    mod_path = _LAZY_MAP.get(name)
    if not mod_path:
        raise AttributeError(name)
    return import_module(mod_path)


def __dir__() -> list[str]:
    return sorted(set(globals().keys()) | set(_LAZY_MAP.keys()))
