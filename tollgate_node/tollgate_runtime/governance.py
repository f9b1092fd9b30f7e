"""
GovernanceEngine: proposals, weighted votes, quorum-gated execution.

State machine per proposal: open -> executed (terminal). A failed
execution attempt changes nothing and the proposal stays executable once
the tallies allow it.

Execution requires all of:
- not already executed
- votes_for > votes_against (strict majority; a tie fails)
- votes_for + votes_against >= quorum (weight cast in either direction)

Vote policy
-----------
"cumulative" (default) keeps the long-standing behaviour: nothing stops an
identity from calling vote() repeatedly, and every call adds its weight.
"single" rejects a second vote from the same identity on the same
proposal with ALREADY_VOTED.

Ballots are recorded under both policies:

    state["governance"]["ballots"][str(pid)][voter] = {"for": int, "against": int}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from . import events
from .models import Proposal
from .results import UINT64_MAX, ErrorKind, require, require_amount, require_bounded_text
from .state import Transaction, ensure_dict, peek
from .token_ledger import LedgerCollaborator

log = logging.getLogger(__name__)

VOTE_POLICY_CUMULATIVE = "cumulative"
VOTE_POLICY_SINGLE = "single"
VALID_VOTE_POLICIES = {VOTE_POLICY_CUMULATIVE, VOTE_POLICY_SINGLE}

DEFAULT_QUORUM = 100
DEFAULT_DESCRIPTION_MAX_BYTES = 256


@dataclass(frozen=True)
class GovernanceParams:
    quorum: int = DEFAULT_QUORUM
    description_max_bytes: int = DEFAULT_DESCRIPTION_MAX_BYTES
    balance_gated_votes: bool = True
    vote_policy: str = VOTE_POLICY_CUMULATIVE
    voting_period_sec: int = 0  # 0 = proposals never close for voting

    def __post_init__(self) -> None:
        if self.vote_policy not in VALID_VOTE_POLICIES:
            raise ValueError(f"vote_policy must be one of {sorted(VALID_VOTE_POLICIES)}")
        if self.quorum < 0:
            raise ValueError("quorum must be >= 0")
        if self.voting_period_sec < 0:
            raise ValueError("voting_period_sec must be >= 0")

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "GovernanceParams":
        section = dict((cfg or {}).get("governance", {}) or {})
        return cls(
            quorum=int(section.get("quorum", DEFAULT_QUORUM)),
            description_max_bytes=int(section.get("description_max_bytes", DEFAULT_DESCRIPTION_MAX_BYTES)),
            balance_gated_votes=bool(section.get("balance_gated_votes", True)),
            vote_policy=str(section.get("vote_policy", VOTE_POLICY_CUMULATIVE)).strip().lower(),
            voting_period_sec=int(section.get("voting_period_sec", 0) or 0),
        )


def proposals(state: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    return peek(state, "governance", "proposals")


def ballots(state: Dict[str, Any], proposal_id: Any) -> Dict[str, Dict[str, int]]:
    return peek(state, "governance", "ballots", str(proposal_id))


def find_proposal(state: Dict[str, Any], proposal_id: Any) -> Dict[str, Any]:
    p = proposals(state).get(str(proposal_id))
    require(isinstance(p, dict), ErrorKind.PROPOSAL_NOT_FOUND, f"proposal {proposal_id} not found")
    return p


def is_executable(p: Dict[str, Any], quorum: int) -> bool:
    yes = int(p.get("votes_for", 0) or 0)
    no = int(p.get("votes_against", 0) or 0)
    return (not p.get("executed")) and yes > no and (yes + no) >= int(quorum)


class GovernanceEngine:
    def __init__(
        self,
        ledger: Optional[LedgerCollaborator] = None,
        params: Optional[GovernanceParams] = None,
    ) -> None:
        self.ledger = ledger
        self.params = params or GovernanceParams()
        if self.params.balance_gated_votes and ledger is None:
            raise ValueError("balance-gated voting needs a ledger collaborator")

    # ------------------------
    # Proposal lifecycle
    # ------------------------
    def create(self, tx: Transaction, caller: str, description: Any) -> int:
        description = require_bounded_text(description, self.params.description_max_bytes, "description")

        pid = tx.next_id("governance")
        created_at = int(tx.now)
        ensure_dict(tx.ns("governance"), "proposals")[str(pid)] = {
            "id": pid,
            "proposer": caller,
            "description": description,
            "votes_for": 0,
            "votes_against": 0,
            "executed": False,
            "created_at": created_at,
            "closes_at": created_at + self.params.voting_period_sec if self.params.voting_period_sec else None,
            "executed_at": None,
        }
        tx.emit(events.PROPOSAL_CREATED, [pid], {"description": description})
        return pid

    def vote(self, tx: Transaction, caller: str, proposal_id: Any, support: bool, weight: Any) -> Dict[str, int]:
        # Weight is checked before anything else, whatever state the proposal is in.
        weight = require_amount(weight, "weight")

        p = find_proposal(tx.state, proposal_id)
        require(not p.get("executed"), ErrorKind.PROPOSAL_CLOSED, f"proposal {p['id']} already executed")
        closes_at = p.get("closes_at")
        require(
            closes_at is None or tx.now < int(closes_at),
            ErrorKind.PROPOSAL_CLOSED,
            f"voting on proposal {p['id']} closed at {closes_at}",
        )

        cast = ensure_dict(ensure_dict(tx.ns("governance"), "ballots"), str(p["id"]))
        if self.params.vote_policy == VOTE_POLICY_SINGLE:
            require(caller not in cast, ErrorKind.ALREADY_VOTED, f"{caller} already voted on {p['id']}")

        if self.params.balance_gated_votes:
            # Weight is advisory: the balance must cover it but nothing is spent or locked.
            have = self.ledger.balance_of(caller)
            require(have >= weight, ErrorKind.INSUFFICIENT_BALANCE, f"{caller} has {have}, voted {weight}")

        side = "votes_for" if support else "votes_against"
        new_total = int(p.get(side, 0) or 0) + weight
        require(new_total <= UINT64_MAX, ErrorKind.INVALID_AMOUNT, f"{side} would overflow")
        p[side] = new_total

        entry = cast.setdefault(caller, {"for": 0, "against": 0})
        entry["for" if support else "against"] += weight

        tx.emit(events.VOTE_CAST, [p["id"]], {"support": bool(support), "weight": weight})
        return {"votes_for": p["votes_for"], "votes_against": p["votes_against"]}

    def execute(self, tx: Transaction, caller: str, proposal_id: Any) -> None:
        p = find_proposal(tx.state, proposal_id)
        require(not p.get("executed"), ErrorKind.CANNOT_EXECUTE, f"proposal {p['id']} already executed")
        require(
            is_executable(p, self.params.quorum),
            ErrorKind.CANNOT_EXECUTE,
            f"proposal {p['id']} has for={p['votes_for']} against={p['votes_against']} quorum={self.params.quorum}",
        )

        p["executed"] = True
        p["executed_at"] = int(tx.now)
        log.info("proposal %s executed by %s", p["id"], caller)
        tx.emit(
            events.PROPOSAL_EXECUTED,
            [p["id"]],
            {"votes_for": p["votes_for"], "votes_against": p["votes_against"]},
        )

    # ------------------------
    # Queries
    # ------------------------
    def get(self, state: Dict[str, Any], proposal_id: Any) -> Proposal:
        return Proposal.from_raw(find_proposal(state, proposal_id))

    def list_all(self, state: Dict[str, Any]) -> List[Proposal]:
        return sorted((Proposal.from_raw(p) for p in proposals(state).values()), key=lambda p: p.id)

    def ballots_for(self, state: Dict[str, Any], proposal_id: Any) -> Dict[str, Dict[str, int]]:
        find_proposal(state, proposal_id)
        return {voter: dict(v) for voter, v in ballots(state, proposal_id).items()}
