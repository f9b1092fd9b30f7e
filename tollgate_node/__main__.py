# tollgate_node/__main__.py
"""
Entry point for running one Tollgate operation against a persisted state:

    python -m tollgate_node [--data-dir ./data] [--config-root .] <command> ...

Examples:
    python -m tollgate_node credit --to @alice --amount 500
    python -m tollgate_node content create --as @alice --url https://example.org/a
    python -m tollgate_node content grant --as @alice --id 1 --identity @bob
    python -m tollgate_node proposal create --as @alice --description "raise limits"
    python -m tollgate_node proposal vote --as @alice --id 1 --support yes --weight 100
    python -m tollgate_node proposal execute --as @bob --id 1

Every command prints a JSON receipt. Exit code: 0 ok, 1 domain error, 2 usage error.

Env toggles:
  TOLLGATE_REPO_ROOT=...   -> where tollgate_config.yaml is read from
  TOLLGATE_DATA_DIR=...    -> snapshot directory
  TOLLGATE_LOG_LEVEL=...   -> DEBUG / INFO / WARNING
"""

from __future__ import annotations

import argparse
import json
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from .config import get_log_level, load_config
from .executor import TollgateExecutor
from .settings import settings
from .tollgate_runtime.results import Ok, Result

log = logging.getLogger("tollgate_node")


def _support(raw: str) -> bool:
    v = raw.strip().lower()
    if v in ("yes", "for", "true", "1"):
        return True
    if v in ("no", "against", "false", "0"):
        return False
    raise argparse.ArgumentTypeError("support must be yes/no")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="tollgate-node",
        description="Token-gated content registry and governance (single-operation CLI)",
    )
    p.add_argument("--config-root", default=settings.REPO_ROOT, help="Directory holding tollgate_config.yaml")
    p.add_argument("--data-dir", default=settings.DATA_DIR or None, help="Snapshot directory")
    sub = p.add_subparsers(dest="command", required=True)

    # content
    content = sub.add_parser("content", help="Content registry").add_subparsers(dest="action", required=True)
    c = content.add_parser("create")
    c.add_argument("--as", dest="caller", required=True)
    c.add_argument("--url", required=True)
    c = content.add_parser("get")
    c.add_argument("--as", dest="caller", required=True)
    c.add_argument("--id", type=int, required=True)
    c = content.add_parser("update")
    c.add_argument("--as", dest="caller", required=True)
    c.add_argument("--id", type=int, required=True)
    c.add_argument("--url", required=True)
    c.add_argument("--access", action="append", default=[], help="Repeat for each identity")
    c = content.add_parser("delete")
    c.add_argument("--as", dest="caller", required=True)
    c.add_argument("--id", type=int, required=True)
    c = content.add_parser("grant")
    c.add_argument("--as", dest="caller", required=True)
    c.add_argument("--id", type=int, required=True)
    c.add_argument("--identity", required=True)
    c = content.add_parser("list")
    c.add_argument("--owner", required=True)

    # proposal
    proposal = sub.add_parser("proposal", help="Governance").add_subparsers(dest="action", required=True)
    c = proposal.add_parser("create")
    c.add_argument("--as", dest="caller", required=True)
    c.add_argument("--description", required=True)
    c = proposal.add_parser("vote")
    c.add_argument("--as", dest="caller", required=True)
    c.add_argument("--id", type=int, required=True)
    c.add_argument("--support", type=_support, required=True)
    c.add_argument("--weight", type=int, required=True)
    c = proposal.add_parser("execute")
    c.add_argument("--as", dest="caller", required=True)
    c.add_argument("--id", type=int, required=True)
    c = proposal.add_parser("show")
    c.add_argument("--id", type=int, required=True)
    proposal.add_parser("list")

    # payments
    c = sub.add_parser("tip", help="Tip another identity")
    c.add_argument("--as", dest="caller", required=True)
    c.add_argument("--to", required=True)
    c.add_argument("--amount", type=int, required=True)
    c = sub.add_parser("subscribe", help="Pay a content owner to subscribe")
    c.add_argument("--as", dest="caller", required=True)
    c.add_argument("--id", type=int, required=True)
    c.add_argument("--fee", type=int, required=True)
    c = sub.add_parser("subscribed", help="Check a subscription")
    c.add_argument("--subscriber", required=True)
    c.add_argument("--id", type=int, required=True)

    # profile
    profile = sub.add_parser("profile", help="Profiles").add_subparsers(dest="action", required=True)
    c = profile.add_parser("set")
    c.add_argument("--as", dest="caller", required=True)
    c.add_argument("--username", required=True)
    c.add_argument("--bio", default="")
    c = profile.add_parser("get")
    c.add_argument("--identity", required=True)

    # ledger
    c = sub.add_parser("balance", help="Show a balance")
    c.add_argument("--identity", required=True)
    c = sub.add_parser("credit", help="Dev faucet")
    c.add_argument("--to", required=True)
    c.add_argument("--amount", type=int, required=True)

    return p


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump()
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    return value


def dispatch(ex: TollgateExecutor, args: argparse.Namespace) -> Result:
    cmd = args.command
    action = getattr(args, "action", None)

    if cmd == "content":
        if action == "create":
            return ex.create_content(args.caller, args.url)
        if action == "get":
            return ex.get_content(args.caller, args.id)
        if action == "update":
            return ex.update_content(args.caller, args.id, args.url, list(args.access))
        if action == "delete":
            return ex.delete_content(args.caller, args.id)
        if action == "grant":
            return ex.grant_access(args.caller, args.id, args.identity)
        if action == "list":
            return ex.list_content(args.owner)

    if cmd == "proposal":
        if action == "create":
            return ex.create_proposal(args.caller, args.description)
        if action == "vote":
            return ex.vote(args.caller, args.id, args.support, args.weight)
        if action == "execute":
            return ex.execute_proposal(args.caller, args.id)
        if action == "show":
            return ex.get_proposal(args.id)
        if action == "list":
            return ex.list_proposals()

    if cmd == "tip":
        return ex.tip_user(args.caller, args.to, args.amount)
    if cmd == "subscribe":
        return ex.subscribe(args.caller, args.id, args.fee)
    if cmd == "subscribed":
        return ex.is_subscribed(args.subscriber, args.id)

    if cmd == "profile":
        if action == "set":
            return ex.set_profile(args.caller, args.username, args.bio)
        if action == "get":
            return ex.get_profile(args.identity)

    if cmd == "balance":
        return Ok(ex.balance_of(args.identity))
    if cmd == "credit":
        return ex.credit(args.to, args.amount)

    raise ValueError(f"unknown command {cmd} {action or ''}".strip())


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    cfg = load_config(args.config_root)
    if not logging.getLogger().handlers:
        logging.basicConfig(level=get_log_level(cfg), format="%(asctime)s [%(levelname)s] %(message)s")

    ex = TollgateExecutor(cfg, data_dir=args.data_dir)
    res = dispatch(ex, args)

    receipt: Dict[str, Any] = res.to_receipt()
    if res.ok:
        receipt["value"] = _jsonable(receipt.get("value"))
    else:
        log.warning("%s failed: %s (%s)", args.command, receipt["error"], receipt["detail"])
    print(json.dumps(receipt, indent=2, sort_keys=True))
    return 0 if res.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
