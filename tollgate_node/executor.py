from __future__ import annotations

"""
Tollgate Executor

Single entry surface for the node. Wires together:
- StateStore (one global re-entrant lock, snapshot rollback, optional JSON persistence)
- ContentRegistry, GovernanceEngine, Payments, ProfileBook
- the ledger collaborator (bundled TokenLedger unless one is injected)
- the event sink (bundled EventLog unless one is injected)

Every public method takes the caller identity first (already authenticated
upstream) and returns Ok(value) or Err(kind). Domain failures never raise.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence

from .config import default_config, deep_merge, get_data_dir, get_genesis_balances, get_persistence_driver
from .tollgate_runtime.atomic_store import AtomicStore
from .tollgate_runtime.content import ContentParams, ContentRegistry
from .tollgate_runtime.events import EventLog, EventSink
from .tollgate_runtime.governance import GovernanceEngine, GovernanceParams
from .tollgate_runtime.payments import Payments
from .tollgate_runtime.profiles import ProfileBook, ProfileParams
from .tollgate_runtime.results import Result
from .tollgate_runtime.state import StateStore, Transaction
from .tollgate_runtime.token_ledger import LedgerCollaborator, TokenLedger

log = logging.getLogger(__name__)


class TollgateExecutor:
    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        *,
        data_dir: Optional[str] = None,
        ledger: Optional[LedgerCollaborator] = None,
        sink: Optional[EventSink] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.config = deep_merge(default_config(), config)

        persistence = None
        if get_persistence_driver(self.config) == "json":
            pcfg = self.config.get("persistence", {})
            root = Path(data_dir or get_data_dir(self.config))
            root.mkdir(parents=True, exist_ok=True)
            persistence = AtomicStore(
                root,
                filename=str(pcfg.get("filename", "tollgate_state.json")),
                keep_backups=int(pcfg.get("keep_backups", 2)),
            )

        self.events = sink if sink is not None else EventLog()
        store_kwargs: Dict[str, Any] = {"sink": self.events}
        if clock is not None:
            store_kwargs["clock"] = clock
        self.store = StateStore.open(persistence, **store_kwargs)

        fresh = self.store.is_empty()
        self.token_ledger: Optional[TokenLedger] = None
        if ledger is None:
            self.token_ledger = TokenLedger(self.store)
            ledger = self.token_ledger
        self.ledger: LedgerCollaborator = ledger

        self.content = ContentRegistry(ContentParams.from_config(self.config))
        self.governance = GovernanceEngine(self.ledger, GovernanceParams.from_config(self.config))
        self.payments = Payments(self.ledger)
        self.profiles = ProfileBook(ProfileParams.from_config(self.config))

        genesis = get_genesis_balances(self.config)
        if fresh and genesis and self.token_ledger is not None:
            res = self.store.apply_atomic(lambda tx: self.token_ledger.seed(genesis), actor="@genesis")
            if res.ok:
                log.info("seeded %d genesis balances", len(genesis))
            else:
                log.warning("genesis balances rejected: %s", res.detail)

    def _apply(self, caller: str, fn: Callable[[Transaction], Any]) -> Result:
        return self.store.apply_atomic(fn, actor=caller)

    # ------------------------------------------------------------------
    # Content registry
    # ------------------------------------------------------------------

    def create_content(self, caller: str, url: str) -> Result:
        return self._apply(caller, lambda tx: self.content.create(tx, caller, url))

    def get_content(self, caller: str, content_id: int) -> Result:
        return self.store.read(lambda s: self.content.get(s, caller, content_id))

    def update_content(self, caller: str, content_id: int, url: str, access_list: Sequence[str]) -> Result:
        return self._apply(caller, lambda tx: self.content.update(tx, caller, content_id, url, access_list))

    def delete_content(self, caller: str, content_id: int) -> Result:
        def _delete(tx: Transaction) -> None:
            self.content.delete(tx, caller, content_id)
            self.payments.forget_content(tx, content_id)

        return self._apply(caller, _delete)

    def grant_access(self, caller: str, content_id: int, identity: str) -> Result:
        return self._apply(caller, lambda tx: self.content.grant(tx, caller, content_id, identity))

    def list_content(self, owner: str) -> Result:
        return self.store.read(lambda s: self.content.list_owned(s, owner))

    # ------------------------------------------------------------------
    # Governance
    # ------------------------------------------------------------------

    def create_proposal(self, caller: str, description: str) -> Result:
        return self._apply(caller, lambda tx: self.governance.create(tx, caller, description))

    def vote(self, caller: str, proposal_id: int, support: bool, weight: int) -> Result:
        return self._apply(caller, lambda tx: self.governance.vote(tx, caller, proposal_id, support, weight))

    def execute_proposal(self, caller: str, proposal_id: int) -> Result:
        return self._apply(caller, lambda tx: self.governance.execute(tx, caller, proposal_id))

    def get_proposal(self, proposal_id: int) -> Result:
        return self.store.read(lambda s: self.governance.get(s, proposal_id))

    def list_proposals(self) -> Result:
        return self.store.read(self.governance.list_all)

    def ballots(self, proposal_id: int) -> Result:
        return self.store.read(lambda s: self.governance.ballots_for(s, proposal_id))

    # ------------------------------------------------------------------
    # Token-weighted actions
    # ------------------------------------------------------------------

    def tip_user(self, caller: str, recipient: str, amount: int) -> Result:
        return self._apply(caller, lambda tx: self.payments.tip(tx, caller, recipient, amount))

    def subscribe(self, caller: str, content_id: int, fee: int) -> Result:
        return self._apply(caller, lambda tx: self.payments.subscribe(tx, caller, content_id, fee))

    def is_subscribed(self, subscriber: str, content_id: int) -> Result:
        return self.store.read(lambda s: self.payments.is_subscribed(s, subscriber, content_id))

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def set_profile(self, caller: str, username: str, bio: str = "") -> Result:
        return self._apply(caller, lambda tx: self.profiles.set(tx, caller, username, bio))

    def get_profile(self, identity: str) -> Result:
        return self.store.read(lambda s: self.profiles.get(s, identity))

    # ------------------------------------------------------------------
    # Ledger
    # ------------------------------------------------------------------

    def balance_of(self, identity: str) -> int:
        return self.ledger.balance_of(identity)

    def credit(self, identity: str, amount: int) -> Result:
        """Dev faucet. Only available with the bundled TokenLedger."""
        if self.token_ledger is None:
            raise RuntimeError("credit needs the bundled TokenLedger")

        def _credit(tx: Transaction) -> int:
            return self.token_ledger.credit(identity, amount)

        return self._apply("@faucet", _credit)

