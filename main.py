"""Command-line entry point for pruning expired channel domains."""

import argparse
import asyncio
import json
import logging
import sys
from contextvars import ContextVar
from typing import Dict, List, Optional, Sequence

from config.config import settings
from integration.errors import HostingError
from integration.hosting_integration import HostingIntegration

current_project_var: ContextVar[str] = ContextVar("current_project", default="n/a")

_LOG_FORMAT = "%(asctime)s %(levelname)s [project=%(project_id)s] %(name)s %(message)s"

_project_filter_attached = False


class _ProjectIdFilter(logging.Filter):
    """Ensure every log record carries the project currently being processed."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.project_id = current_project_var.get()
        return True


_project_filter = _ProjectIdFilter()


def _init_logging() -> None:
    """Configure logging once per process."""

    global _project_filter_attached

    root_logger = logging.getLogger()
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        root_logger.addHandler(handler)
    else:
        for handler in root_logger.handlers:
            formatter = handler.formatter
            if formatter is None or "%(project_id)" not in getattr(formatter, "_fmt", ""):
                handler.setFormatter(logging.Formatter(_LOG_FORMAT))

    if not _project_filter_attached:
        root_logger.addFilter(_project_filter)
        for handler in root_logger.handlers:
            handler.addFilter(_project_filter)
        _project_filter_attached = True

    root_logger.setLevel(logging.INFO)


async def _clean_auth_domains(
    project_id: str,
    sites: Sequence[str],
    *,
    dry_run: bool = False,
    hosting: Optional[HostingIntegration] = None,
) -> Dict[str, List[str]]:
    current_project_var.set(project_id)
    owns_client = hosting is None
    client = hosting or HostingIntegration(settings=settings)
    try:
        if dry_run:
            result: Dict[str, List[str]] = {}
            for site in sites:
                result[site] = await client.get_clean_domains(project_id, site)
            return result
        return await client.clean_auth_state(project_id, sites)
    finally:
        if owns_client:
            await client.aclose()


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Hosting channel maintenance")
    commands = parser.add_subparsers(dest="command", required=True)

    clean = commands.add_parser(
        "clean-auth-domains",
        help="Remove authorized domains of expired preview channels",
    )
    clean.add_argument("project_id", metavar="PROJECT")
    clean.add_argument("sites", metavar="SITE", nargs="+")
    clean.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the cleaned domain lists without updating them",
    )
    return parser.parse_args(list(argv) if argv is not None else None)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    _init_logging()
    logger = logging.getLogger(__name__)
    # asyncio.run copies this context into its task.
    current_project_var.set(args.project_id)

    try:
        result = asyncio.run(
            _clean_auth_domains(args.project_id, args.sites, dry_run=args.dry_run)
        )
    except HostingError as exc:
        logger.error("Cleaning authorized domains failed: %s", exc)
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
