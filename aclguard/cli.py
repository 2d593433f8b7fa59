"""CLI entry points."""

from __future__ import annotations

import argparse
import json
import sys

from .exceptions import BadPolicy
from .policy import load_policy

REALMS = ("authenticated", "unauthenticated")


def run_check(args: argparse.Namespace) -> int:
    policy = load_policy(args.policy)
    registry = policy.realm(args.realm).build_registry()
    if registry.allowed(args.target, args.resource, args.action):
        print("ALLOW")
        return 0
    print("DENY")
    return 1


def run_show(args: argparse.Namespace) -> int:
    policy = load_policy(args.policy)
    registry = policy.realm(args.realm).build_registry()
    print(json.dumps(registry.snapshot(), indent=2, sort_keys=True))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="aclguard", description="ACL Guard CLI")
    sub = parser.add_subparsers(dest="command")

    check_cmd = sub.add_parser("check", help="Ask whether targets may perform an action")
    check_cmd.add_argument("--policy", required=True)
    check_cmd.add_argument("--target", required=True, action="append")
    check_cmd.add_argument("--resource", required=True)
    check_cmd.add_argument("--action", required=True)
    check_cmd.add_argument("--realm", choices=REALMS, default="authenticated")

    show_cmd = sub.add_parser("show", help="Print the registry built from a policy")
    show_cmd.add_argument("--policy", required=True)
    show_cmd.add_argument("--realm", choices=REALMS, default="authenticated")

    return parser


def cli_main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        if args.command == "check":
            return run_check(args)
        if args.command == "show":
            return run_show(args)
    except BadPolicy as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2
    parser.print_help()
    return 0


def main() -> None:
    sys.exit(cli_main())
