"""Command-line interface for scaffold-engine.

Usage:
    scaffold spec show [--namespace NS]
    scaffold spec set <namespace> <key> <value> [--force]
    scaffold spec plan app
    scaffold fragments scan
    scaffold fragments apply <manifest> [--dry-run]
"""

import argparse
import logging
import os
import sys

from scaffold_engine import __version__
from scaffold_engine.cli.fragments import cmd_fragments_apply, cmd_fragments_scan
from scaffold_engine.cli.spec import cmd_spec_plan, cmd_spec_set, cmd_spec_show
from scaffold_engine.errors import CorruptSpecError


def _configure_logging(args: argparse.Namespace) -> None:
    if args.debug:
        level = "DEBUG"
    elif args.verbose:
        level = "INFO"
    else:
        level = os.environ.get("SCAFFOLD_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scaffold",
        description="Project spec store and fragment merging for scaffold generators",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--project", default=None,
        help="Project root (default: $SCAFFOLD_PROJECT_DIR or current directory)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log progress")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    # spec
    spec = sub.add_parser("spec", help="Project spec operations")
    spec_sub = spec.add_subparsers(dest="subcommand")

    show = spec_sub.add_parser("show", help="Print the recorded project spec")
    show.add_argument("--namespace", default=None, help="Only show one namespace")

    st = spec_sub.add_parser("set", help="Record a single option")
    st.add_argument("namespace")
    st.add_argument("key")
    st.add_argument("value", help="Value, parsed as YAML (e.g. '[rest, socketio]')")
    st.add_argument(
        "--force", action="store_true",
        help="Overwrite a value that is already recorded",
    )

    plan = spec_sub.add_parser("plan", help="Show which options are known or would be asked")
    plan.add_argument("namespace", choices=["app"])

    # fragments
    frag = sub.add_parser("fragments", help="Fragment marker operations")
    frag_sub = frag.add_subparsers(dest="subcommand")
    frag_sub.add_parser("scan", help="List fragments found in generated files")

    apply = frag_sub.add_parser("apply", help="Apply a fragment manifest")
    apply.add_argument("manifest", help="Path to a fragment manifest (YAML)")
    apply.add_argument(
        "--dry-run", action="store_true",
        help="Report changes without writing",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    _configure_logging(args)

    dispatch = {
        ("spec", "show"): cmd_spec_show,
        ("spec", "set"): cmd_spec_set,
        ("spec", "plan"): cmd_spec_plan,
        ("fragments", "scan"): cmd_fragments_scan,
        ("fragments", "apply"): cmd_fragments_apply,
    }

    subcommand: str | None = getattr(args, "subcommand", None)
    handler = dispatch.get((args.command, subcommand or ""))
    if not handler:
        parser.parse_args([args.command, "--help"])
        return 0

    try:
        return handler(args)
    except CorruptSpecError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        print("Fix or remove the spec file, then run again.", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
