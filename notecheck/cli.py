"""Command-line interface for notecheck.

Check a file of speaker notes from the terminal, or run the HTTP server.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Iterable, TextIO

from notecheck.config import Settings
from notecheck.language_check.tokenizer import context_snippet
from notecheck.llm.provider_registry import available_providers
from notecheck.models import Issue
from notecheck.review.actions import locate_issue
from notecheck.review.hybrid import HybridChecker
from notecheck.startup import build_checker

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notecheck",
        description="Spell check presentation speaker notes with a dictionary and a language model",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  # Dictionary and language model check
  python -m notecheck check notes.txt --context-file slide.txt

  # Dictionary only, treating product names as correct
  python -m notecheck check notes.txt --quick --term Acme --term FooCloud

  # Print issues as the model reports them
  python -m notecheck check notes.txt --stream

  # Run the HTTP API
  python -m notecheck serve --port 3000

Environment Variables:
  NOTECHECK_DICTIONARY_BACKEND  spellchecker, languagetool or none (default: spellchecker)
  NOTECHECK_AI_ENABLED          Set to false/0 to skip the language model (default: true)
  LLM_PRIMARY                   Primary LLM provider: {' or '.join(available_providers())}
  LLM_FALLBACK                  Fallback providers (comma-separated; default: all others)
        """,
    )
    parser.add_argument(
        "--dotenv",
        type=Path,
        default=None,
        help="Path to a .env file (default: .env in the working directory)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: NOTECHECK_LOG_LEVEL or INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    check = subparsers.add_parser("check", help="Check a text file (or stdin)")
    check.add_argument(
        "file",
        nargs="?",
        default="-",
        help="File with the speaker notes; '-' or omitted reads stdin",
    )
    check.add_argument(
        "--context-file",
        type=Path,
        help="File with the slide content used as context",
    )
    check.add_argument(
        "--term",
        action="append",
        default=[],
        dest="terms",
        help="Term to treat as correct (repeatable)",
    )
    mode = check.add_mutually_exclusive_group()
    mode.add_argument(
        "--quick",
        action="store_true",
        help="Dictionary check only",
    )
    mode.add_argument(
        "--stream",
        action="store_true",
        help="Print issues as they are found",
    )
    check.add_argument(
        "--json",
        action="store_true",
        help="Print machine-readable JSON",
    )

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None, help="Bind address (default: NOTECHECK_HOST)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: NOTECHECK_PORT)")
    return parser


def _read_input(name: str, stdin: TextIO) -> str:
    if name == "-":
        return stdin.read()
    return Path(name).read_text(encoding="utf-8")


def format_issue(text: str, issue: Issue) -> str:
    """One human-readable line for an issue, with surrounding context."""
    suggestions = ", ".join(issue.suggestions) or "no suggestion"
    line = f"{issue.word} -> {suggestions} [{issue.kind.value}, {issue.origin.value}] {issue.reason}"
    position = locate_issue(text, issue)
    if position is None:
        return line
    line_no = text.count("\n", 0, position.start) + 1
    snippet = context_snippet(text, position.start, position.end).strip()
    return f"{line_no}: {line}\n    ...{snippet}..."


def _print_issues(text: str, issues: Iterable[Issue], out: TextIO) -> int:
    count = 0
    for issue in issues:
        print(format_issue(text, issue), file=out)
        count += 1
    if count == 0:
        print("No issues found.", file=out)
    return count


async def _run_stream(
    checker: HybridChecker,
    text: str,
    context: str,
    terms: list[str],
    *,
    as_json: bool,
    out: TextIO,
) -> int:
    async for message in checker.stream_check(text, context, terms):
        if as_json:
            print(json.dumps(message), file=out)
            continue
        kind = message["type"]
        if kind == "error" and "error" in message:
            print(format_issue(text, Issue.model_validate(message["error"])), file=out)
        elif kind == "error":
            print(f"Error: {message['message']}", file=sys.stderr)
            return 1
        elif kind == "done":
            note = " (dictionary only)" if message["fallback_mode"] else ""
            print(f"Done: {len(message['errors'])} issue(s){note}", file=out)
    return 0


def _run_check(
    args: argparse.Namespace,
    checker: HybridChecker,
    *,
    stdin: TextIO,
    out: TextIO,
) -> int:
    try:
        text = _read_input(args.file, stdin)
        context = (
            args.context_file.read_text(encoding="utf-8") if args.context_file else ""
        )
    except OSError as exc:
        LOGGER.error("Could not read input: %s", exc)
        return 1

    if not text.strip():
        LOGGER.error("Nothing to check: input is empty")
        return 1

    if args.stream:
        return asyncio.run(
            _run_stream(checker, text, context, args.terms, as_json=args.json, out=out)
        )

    payload: Any
    if args.quick:
        report = checker.quick_check(text, args.terms)
        issues, payload = report.errors, report.to_dict()
    else:
        result = checker.full_check(text, context, args.terms)
        issues, payload = result.errors, result.to_dict()
        if result.fallback_mode and not args.json:
            LOGGER.warning("Dictionary results only: %s", result.fallback_reason)

    if args.json:
        print(json.dumps(payload, indent=2), file=out)
    else:
        _print_issues(text, issues, out)
    return 0


def _run_serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    from notecheck.api import create_app

    uvicorn.run(
        create_app(settings),
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


def main(
    argv: list[str] | None = None,
    *,
    checker: HybridChecker | None = None,
    stdin: TextIO | None = None,
    out: TextIO | None = None,
) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env(args.dotenv)
    if args.log_level:
        settings.log_level = args.log_level.upper()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        return _run_serve(args, settings)

    owned = checker is None
    try:
        if checker is None:
            checker = build_checker(settings)
        return _run_check(
            args,
            checker,
            stdin=stdin or sys.stdin,
            out=out or sys.stdout,
        )
    except Exception:
        LOGGER.exception("Check failed")
        return 1
    finally:
        if owned and checker is not None:
            checker.close()
