"""
Cedar command-line entry point.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from cedar import __version__
from cedar.cli.interactive import run_interactive_mode, show_steps
from cedar.cli.utils import print_error
from cedar.config import get_config
from cedar.core.exceptions import CedarError
from cedar.core.logging import setup_logging
from cedar.core.providers.factory import get_backend_from_config
from cedar.core.steps import WORKFLOW_STEPS
from cedar.core.workflow import RunStatus
from cedar.workflow.research_flow import ResearchFlowController

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cedar",
        description="Step-by-step research workflow runner",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override CEDAR_LOG_LEVEL (DEBUG, INFO, WARNING, ERROR)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("steps", help="List the research pipeline")

    run_parser = subparsers.add_parser("run", help="Run the research flow for a goal")
    run_parser.add_argument("goal", nargs="?", help="Research goal (prompted for if omitted)")
    run_parser.add_argument(
        "--auto",
        action="store_true",
        help="Advance through every step without asking",
    )

    return parser


async def _run(goal: Optional[str], auto: bool) -> RunStatus:
    config = get_config()
    backend = get_backend_from_config(config)
    async with backend:
        controller = ResearchFlowController(backend)
        return await run_interactive_mode(controller, goal=goal, auto=auto)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the CLI.

    Returns:
        int: 0 when the flow completed, 1 otherwise
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "steps":
        show_steps(WORKFLOW_STEPS)
        return 0

    if args.auto and not args.goal:
        parser.error("--auto needs a GOAL")

    try:
        config = get_config()
    except ValidationError as e:
        print_error(f"Invalid configuration: {e}")
        return 1

    setup_logging(args.log_level or config.log_level, config.log_file)

    try:
        status = asyncio.run(_run(args.goal, args.auto))
    except CedarError as e:
        logger.error(f"Research flow aborted: {e}")
        print_error(str(e), title="Cedar Error")
        return 1

    return 0 if status == RunStatus.COMPLETED else 1


if __name__ == "__main__":
    sys.exit(main())
