"""
tollgate_node/tollgate_runtime/token_ledger.py
----------------------------------------------

Ledger collaborator boundary.

The core only ever needs two calls from the token ledger:

    balance_of(identity) -> int
    transfer(sender, recipient, amount) -> Ok | Err(insufficient_balance)

TokenLedger is the bundled implementation. Balances live in the shared
state under state["balances"], so a transfer made inside a transaction is
rolled back together with everything else if the transaction aborts.

Supply policy (minting, burning, issuance schedule) is not modelled here.
`credit` exists only to seed balances for local runs and tests.
"""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Protocol

from .results import UINT64_MAX, Err, ErrorKind, Ok, Result, require, require_amount
from .state import StateStore, ensure_dict, peek

log = logging.getLogger(__name__)


class LedgerCollaborator(Protocol):
    def balance_of(self, identity: str) -> int:
        ...

    def transfer(self, sender: str, recipient: str, amount: int) -> Result:
        ...


class TokenLedger:
    def __init__(self, store: StateStore) -> None:
        self._store = store

    def _balances(self) -> Dict[str, int]:
        return ensure_dict(self._store.state, "balances")

    def balance_of(self, identity: str) -> int:
        with self._store.lock:
            return int(peek(self._store.state, "balances").get(str(identity), 0) or 0)

    def transfer(self, sender: str, recipient: str, amount: int) -> Result:
        """
        Move `amount` from sender to recipient, all or nothing.

        Validation happens before any write, so a failed transfer leaves
        both balances untouched.
        """
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            return Err(ErrorKind.INVALID_AMOUNT, "amount must be a positive integer")
        if not sender or not recipient:
            return Err(ErrorKind.INVALID_INPUT, "sender and recipient are required")

        with self._store.lock:
            balances = self._balances()
            have = int(balances.get(sender, 0) or 0)
            if have < amount:
                return Err(ErrorKind.INSUFFICIENT_BALANCE, f"{sender} has {have}, needs {amount}")
            if sender == recipient:
                return Ok(None)
            dest = int(balances.get(recipient, 0) or 0)
            if dest + amount > UINT64_MAX:
                return Err(ErrorKind.INVALID_AMOUNT, "recipient balance would overflow")
            balances[sender] = have - amount
            balances[recipient] = dest + amount
        return Ok(None)

    def credit(self, identity: str, amount: int) -> int:
        """
        Dev faucet: add `amount` to an identity and return the new balance.

        Raises TxError(INVALID_AMOUNT), so it must run inside a transaction.
        """
        amount = require_amount(amount)
        with self._store.lock:
            balances = self._balances()
            new = int(balances.get(identity, 0) or 0) + amount
            require(new <= UINT64_MAX, ErrorKind.INVALID_AMOUNT, f"balance of {identity} would overflow uint64")
            balances[str(identity)] = new
            log.info("credited %s to %s (balance=%s)", amount, identity, new)
            return new

    def seed(self, genesis: Mapping[str, int]) -> None:
        for identity, amount in (genesis or {}).items():
            self.credit(str(identity), int(amount))
