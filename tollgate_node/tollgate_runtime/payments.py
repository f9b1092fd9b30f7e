"""
Token-weighted actions: tips and content subscriptions.

Both are thin pass-throughs to the ledger collaborator: check the caller's
balance, transfer, emit. The transfer is always the last fallible domain
step. Only a failed snapshot save can still abort the transaction after
value has moved, and the StateStore logs that at ERROR.

The only state owned here is the subscription table:

    state["payments"]["subscriptions"][str(content_id)][subscriber] = total_fee_paid

Deleting a content record drops its subscriptions with it.
"""

from __future__ import annotations

from typing import Any, Dict

from . import events
from .content import find_record
from .results import ErrorKind, Err, TxError, require, require_amount
from .state import Transaction, ensure_dict, peek
from .token_ledger import LedgerCollaborator


def subscriptions(state: Dict[str, Any]) -> Dict[str, Dict[str, int]]:
    return ensure_dict(ensure_dict(state, "payments"), "subscriptions")


def find_subscriptions(state: Dict[str, Any], content_id: Any) -> Dict[str, int]:
    return peek(state, "payments", "subscriptions", str(content_id))


class Payments:
    def __init__(self, ledger: LedgerCollaborator) -> None:
        self.ledger = ledger

    def _pay(self, sender: str, recipient: str, amount: int) -> None:
        have = self.ledger.balance_of(sender)
        require(have >= amount, ErrorKind.INSUFFICIENT_BALANCE, f"{sender} has {have}, needs {amount}")
        res = self.ledger.transfer(sender, recipient, amount)
        if isinstance(res, Err):
            raise TxError(res.kind, res.detail)

    def tip(self, tx: Transaction, caller: str, recipient: Any, amount: Any) -> None:
        amount = require_amount(amount)
        require(isinstance(recipient, str) and bool(recipient), ErrorKind.INVALID_INPUT, "recipient is required")
        require(recipient != caller, ErrorKind.INVALID_INPUT, "cannot tip yourself")

        tx.emit(events.USER_TIPPED, [recipient], {"amount": amount})
        self._pay(caller, recipient, amount)

    def subscribe(self, tx: Transaction, caller: str, content_id: Any, fee: Any) -> int:
        fee = require_amount(fee, "fee")
        rec = find_record(tx.state, content_id)
        owner = rec["owner"]
        require(owner != caller, ErrorKind.INVALID_INPUT, "owners cannot subscribe to their own content")

        bucket = ensure_dict(subscriptions(tx.state), str(rec["id"]))
        total = int(bucket.get(caller, 0) or 0) + fee
        bucket[caller] = total

        tx.emit(events.SUBSCRIBED, [rec["id"], owner], {"fee": fee, "total": total})
        self._pay(caller, owner, fee)
        return total

    def is_subscribed(self, state: Dict[str, Any], subscriber: str, content_id: Any) -> bool:
        return int(find_subscriptions(state, content_id).get(subscriber, 0) or 0) > 0

    def forget_content(self, tx: Transaction, content_id: Any) -> None:
        """Drop every subscription to a deleted content id."""
        peek(tx.state, "payments", "subscriptions").pop(str(content_id), None)
