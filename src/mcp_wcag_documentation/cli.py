"""CLI entry point for the WCAG documentation index."""

import argparse
import json
import logging
import subprocess
import sys
from dataclasses import asdict
from pathlib import Path

import yaml

from mcp_wcag_documentation.config import Settings
from mcp_wcag_documentation.database import DocumentDatabase
from mcp_wcag_documentation.indexer import GuideIndexer
from mcp_wcag_documentation.linter import RULES, GuideLinter
from mcp_wcag_documentation.models import Platform
from mcp_wcag_documentation.parser import DocumentParser
from mcp_wcag_documentation.severity import IssueCharacteristics, SeverityRubric
from mcp_wcag_documentation.wcag import get_criterion, guideline_name, principle_name

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="mcp-wcag-docs",
        description="Index, search and lint WCAG 2.2 accessibility guides.",
    )
    parser.add_argument("--db", type=Path, help="SQLite database path (overrides configuration)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    index = sub.add_parser("index", help="Index guides from a directory or the configured repository")
    index.add_argument("path", type=Path, nargs="?", help="Guides directory")
    index.add_argument("--git", action="store_true", help="Clone and index the configured repository")
    index.add_argument("--rebuild", action="store_true", help="Clear the index first")

    search = sub.add_parser("search", help="Full-text search over indexed guides")
    search.add_argument("query")
    search.add_argument("--section")
    search.add_argument("--criterion", help="Only guides citing this success criterion")
    search.add_argument("--limit", type=int, default=10)

    criterion = sub.add_parser("criterion", help="Show a success criterion and the guides citing it")
    criterion.add_argument("criterion_id")

    samples = sub.add_parser("samples", help="List indexed code samples")
    samples.add_argument("--criterion")
    samples.add_argument("--platform", choices=[p.value for p in Platform])
    samples.add_argument("--language")
    samples.add_argument("--limit", type=int, default=20)

    lint = sub.add_parser("lint", help="Check guides for broken links, bad citations and invalid samples")
    lint.add_argument("path", type=Path)
    lint.add_argument("--format", choices=["text", "json"], default="text")
    lint.add_argument("--ignore", action="append", default=[], choices=sorted(RULES), metavar="RULE")
    lint.add_argument("--no-code", action="store_true", help="Skip code sample syntax checks")

    severity = sub.add_parser("severity", help="Rate an issue with the severity rubric")
    severity.add_argument("criterion_id", nargs="?")
    severity.add_argument("--blocks-task", action="store_true")
    severity.add_argument("--no-workaround", action="store_true")
    severity.add_argument("--core-flow", action="store_true")
    severity.add_argument("--assistive-tech", action="store_true")
    severity.add_argument("--widespread", action="store_true")

    return parser


def _cmd_index(args: argparse.Namespace, settings: Settings) -> int:
    database = DocumentDatabase(settings.db_path)
    indexer = GuideIndexer(
        database,
        repo_url=settings.repo_url,
        docs_path=settings.docs_path,
        base_url=settings.base_url,
    )
    if args.rebuild:
        database.clear()
    if args.git:
        count = indexer.index_from_git(settings.branch)
    elif args.path is not None:
        count = indexer.index_from_path(args.path)
    else:
        msg = "Either a guides directory or --git is required"
        raise ValueError(msg)
    print(f"Indexed {count} documents into {settings.db_path}")
    return 0


def _cmd_search(args: argparse.Namespace, settings: Settings) -> int:
    database = DocumentDatabase(settings.db_path)
    results = database.search(args.query, section=args.section, limit=args.limit, criterion_id=args.criterion)
    if not results:
        print("No results")
        return 0
    for result in results:
        print(f"{result.title} [{result.section}] {result.url}")
        print(f"    {result.snippet}")
    return 0


def _cmd_criterion(args: argparse.Namespace, settings: Settings) -> int:
    criterion = get_criterion(args.criterion_id)
    status = " (obsolete)" if criterion.obsolete else ""
    print(f"{criterion.criterion_id} {criterion.title} - Level {criterion.level.value}{status}")
    print(f"Principle: {principle_name(criterion.criterion_id)}")
    print(f"Guideline: {guideline_name(criterion.criterion_id)}")
    print(f"Introduced in WCAG {criterion.introduced_in}")

    database = DocumentDatabase(settings.db_path)
    hits = database.find_criterion(criterion.criterion_id)
    if hits:
        print("Guides:")
    for hit in hits:
        marker = "*" if hit.has_entry else " "
        print(f"  {marker} {hit.title} ({hit.path}:{hit.first_line}, {hit.mentions} mentions)")
    return 0


def _cmd_samples(args: argparse.Namespace, settings: Settings) -> int:
    database = DocumentDatabase(settings.db_path)
    samples = database.get_code_samples(
        criterion_id=args.criterion,
        platform=Platform(args.platform) if args.platform else None,
        language=args.language,
        limit=args.limit,
    )
    for sample in samples:
        platform = sample.platform.value if sample.platform else "-"
        print(f"--- {sample.path}:{sample.line} [{sample.language or 'text'}, {platform}, {sample.criterion_id or '-'}]")
        print(sample.code.rstrip())
    return 0


def _cmd_lint(args: argparse.Namespace, settings: Settings) -> int:
    linter = GuideLinter(
        parser=DocumentParser(base_url=settings.base_url),
        check_code=settings.check_code_samples and not args.no_code,
        ignore=[*settings.lint_ignore, *args.ignore],
    )
    report = linter.lint_path(args.path)
    if args.format == "json":
        payload = {
            "documents_checked": report.documents_checked,
            "errors": len(report.errors),
            "warnings": len(report.warnings),
            "issues": [{**asdict(issue), "level": issue.level.value} for issue in report.issues],
        }
        print(json.dumps(payload, indent=2))
    else:
        for issue in report.issues:
            print(issue.format())
        print(
            f"{report.documents_checked} documents checked: "
            f"{len(report.errors)} errors, {len(report.warnings)} warnings"
        )
    return 0 if report.ok else 1


def _cmd_severity(args: argparse.Namespace, settings: Settings) -> int:
    issue = IssueCharacteristics(
        criterion_id=args.criterion_id,
        blocks_task=args.blocks_task,
        has_workaround=not args.no_workaround,
        core_flow=args.core_flow,
        affects_assistive_tech=args.assistive_tech,
        widespread=args.widespread,
    )
    assessment = SeverityRubric().assess(issue)
    print(f"{assessment.severity.value}: {assessment.reason}")
    return 0


COMMANDS = {
    "index": _cmd_index,
    "search": _cmd_search,
    "criterion": _cmd_criterion,
    "samples": _cmd_samples,
    "lint": _cmd_lint,
    "severity": _cmd_severity,
}


def main(argv: list[str] | None = None) -> int:
    """Run the CLI.

    Args:
        argv: Arguments without the program name; defaults to ``sys.argv``.

    Returns:
        Process exit code.
    """
    args = build_parser().parse_args(argv)
    try:
        settings = Settings.load()
    except (OSError, ValueError, yaml.YAMLError) as exc:
        logging.basicConfig(format=LOG_FORMAT)
        logger.error("Invalid configuration: %s", exc)
        return 2
    if args.db is not None:
        settings.db_path = args.db

    logging.basicConfig(level=logging.DEBUG if args.verbose else settings.log_level, format=LOG_FORMAT)

    if args.command in ("index", "search", "criterion", "samples"):
        settings.db_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        return COMMANDS[args.command](args, settings)
    except ValueError as exc:
        logger.error("%s", exc)
        return 2
    except subprocess.CalledProcessError as exc:
        logger.error("git failed: %s", exc.stderr.decode(errors="replace") if exc.stderr else exc)
        return 2


if __name__ == "__main__":
    sys.exit(main())
