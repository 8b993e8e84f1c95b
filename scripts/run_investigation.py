# scripts/run_investigation.py
from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Iterable

from osint_investigator.core.errors import OsintError
from osint_investigator.core.orchestrator import InvestigationOrchestrator
from osint_investigator.core.state import InvestigationResult, SearchParameters
from osint_investigator.utils import configure_logging, get_logger


def parse_args(argv: Iterable[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run an OSINT investigation from the identity fragments you know.",
    )
    parser.add_argument("--name", dest="full_name", help="Full name of the subject.")
    parser.add_argument("--email", help="Email address.")
    parser.add_argument("--phone", help="Phone number in any format.")
    parser.add_argument("--username", help="Username or handle.")
    parser.add_argument("--address", help='Street address, e.g. "123 Main St, Miami, FL 33101".')
    parser.add_argument("--keywords", help="Comma-separated keywords to match in results.")
    parser.add_argument("--relatives", dest="known_relatives", help="Comma-separated known relatives.")
    parser.add_argument(
        "--generate-queries",
        action="store_true",
        help="Rank template web queries from the fragments and dispatch the top ones.",
    )
    parser.add_argument(
        "--top-n",
        type=int,
        default=None,
        help="How many generated queries to dispatch (defaults to WEB_QUERY_TOP_N).",
    )
    parser.add_argument("--log-level", default=None, help="Overrides LOG_LEVEL for this run.")
    return parser.parse_args(list(argv))


def build_parameters(args: argparse.Namespace) -> SearchParameters:
    return SearchParameters(
        full_name=args.full_name,
        email=args.email,
        phone=args.phone,
        username=args.username,
        address=args.address,
        keywords=args.keywords,
        known_relatives=args.known_relatives,
    )


def format_summary(result: InvestigationResult) -> str:
    summary_lines = [
        f"Investigation: {result.investigation_id}",
        f"Status: {result.status.value}",
        f"Searches run: {result.searches_run}",
        f"Search types: {', '.join(result.search_types)}",
        f"Findings persisted: {result.findings_persisted}",
    ]
    return "\n".join(summary_lines)


async def run(args: argparse.Namespace) -> InvestigationResult:
    orchestrator = InvestigationOrchestrator.from_settings()
    if args.top_n is not None:
        orchestrator.query_top_n = max(0, args.top_n)
    try:
        return await orchestrator.start(build_parameters(args), generate_queries=args.generate_queries)
    finally:
        await orchestrator.aclose()


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(argv or sys.argv[1:])
    configure_logging(args.log_level)
    logger = get_logger(__name__)

    try:
        result = asyncio.run(run(args))
    except OsintError as exc:
        logger.error("investigation.cli.error", error=str(exc), error_type=type(exc).__name__)
        return 1

    logger.info("investigation.cli.summary", summary=format_summary(result))
    print(format_summary(result))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
