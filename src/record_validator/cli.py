from __future__ import annotations
import argparse

from .cli_commands import DEFAULT_RULES, cmd_validate
from .logging_config import setup_logging


def main_entry() -> None:
    raise SystemExit(main())


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="rv", description="Rule-based record validator")
    p.add_argument("--log-level", default="WARNING")
    sub = p.add_subparsers(dest="cmd", required=True)

    v = sub.add_parser("validate", help="Validate a record against a rule file")
    v.add_argument("--rules", default=DEFAULT_RULES)
    v.add_argument("--record", required=True, help="YAML or JSON record file")
    v.add_argument(
        "--predicates",
        default=None,
        help="Predicate registry for must_satisfy/guard names, as module:attr",
    )
    v.add_argument("--json", action="store_true", help="Print JSON report")
    v.add_argument("--out", default=None, help="Write JSON report to a file")

    args = p.parse_args(argv)
    setup_logging(args.log_level)

    if args.cmd == "validate":
        return cmd_validate(args.rules, args.record, args.json, args.out, args.predicates)
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
