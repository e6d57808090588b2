"""phabtask CLI.

Opens ``$EDITOR`` on a task template, resolves ``@user`` / ``#project``
references and creates the task with ``maniphest.createtask``.

Arguments the parser does not recognise, and everything after a literal
``--``, are passed to ``arc call-conduit`` ahead of the method name, e.g.::

    phabtask --conduit-uri https://phab.example.com/
    phabtask --priority high -- --trace
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from collections.abc import Sequence
from typing import Any

from phabtask.config import load_config
from phabtask.core import TaskCreator
from phabtask.errors import EditorError, PhabTaskError, format_fatal
from phabtask.logging import configure_logging
from phabtask.ux import print_error, print_fields, print_success

_MAX_HELP_WIDTH = 100
QUIET_LOG_LEVEL = "WARNING"


class _HelpFormatter(argparse.HelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=_MAX_HELP_WIDTH)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="phabtask",
        description="Create a Maniphest task from an editor template",
        formatter_class=_HelpFormatter,
        allow_abbrev=False,
    )
    p.add_argument("--settings", help="YAML settings file (env: PHABTASK_CONFIG)")
    p.add_argument("--editor", help="Editor command (default: $EDITOR, then vim)")
    p.add_argument(
        "--input",
        metavar="FILE",
        help="Parse an already edited template instead of opening the editor",
    )
    p.add_argument("--keep-file", action="store_true", help="Keep the temporary template file")
    p.add_argument("--transport", choices=("arc", "http"), help="How to reach Conduit")
    p.add_argument("--title", help="Pre-fill the Title section")
    p.add_argument("--priority", help="Pre-fill the Priority section")
    p.add_argument(
        "--dry-run",
        action="store_true",
        help="Resolve references and print the payload without creating the task",
    )
    p.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines")
    p.add_argument(
        "--log-level", help="Log level (default from settings: INFO, WARNING with --quiet)"
    )
    p.add_argument(
        "--quiet",
        action="store_true",
        help="Only print the task URI (env: PHABTASK_QUIET=1)",
    )
    return p


def split_argv(argv: Sequence[str]) -> tuple[list[str], list[str]]:
    """Split at the first ``--``; the tail is forwarded untouched."""
    items = list(argv)
    if "--" in items:
        idx = items.index("--")
        return items[:idx], items[idx + 1 :]
    return items, []


def parse_args(argv: Sequence[str]) -> tuple[argparse.Namespace, list[str]]:
    own, tail = split_argv(argv)
    args, unknown = _build_parser().parse_known_args(own)
    if not args.quiet and os.environ.get("PHABTASK_QUIET") == "1":
        args.quiet = True
    return args, [*unknown, *tail]


def _read_input(path: str) -> str:
    try:
        with open(path, encoding="utf-8") as fh:
            return fh.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise EditorError(f"unable to read {path}: {exc}") from exc


def _run(args: argparse.Namespace, extra_args: list[str]) -> int:
    settings = load_config(args.settings)
    if args.transport:
        settings.transport = args.transport
    level = args.log_level or (QUIET_LOG_LEVEL if args.quiet else settings.logging_level)
    logger = configure_logging(
        json_logging=args.json_logs or settings.logging_json_enabled, level=level
    )
    logger.debug(
        "settings loaded",
        source=str(settings.source_file) if settings.source_file else "defaults",
        transport=settings.transport,
    )
    creator = TaskCreator.from_settings(settings, editor=args.editor)
    if args.keep_file:
        creator.keep_file = True

    text = _read_input(args.input) if args.input else None
    presets: dict[str, Any] = {"title": args.title, "priority": args.priority}
    outcome = creator.run(
        text, presets=presets, extra_args=extra_args, dry_run=args.dry_run
    )

    if outcome.result is None:
        print(json.dumps(outcome.fields, indent=2))
        return 0
    if args.quiet:
        print(outcome.result.uri)
    else:
        print_fields("Submitted fields", outcome.fields)
        print_success(f"Task {outcome.result.object_name} created at {outcome.result.uri}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args, extra_args = parse_args(sys.argv[1:] if argv is None else argv)
    try:
        return _run(args, extra_args)
    except PhabTaskError as exc:
        # plain line: <file>:<line> <step>: <message>
        print(format_fatal(exc), file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print_error("interrupted")
        return 130


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
