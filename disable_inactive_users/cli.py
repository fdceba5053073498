"""Command line entry point for DisableInactiveUsers."""

from __future__ import annotations

import argparse
import getpass
import logging
import os
import sys
from typing import Optional, Sequence

import requests
from dotenv import load_dotenv

from disable_inactive_users.config import (
    DEFAULT_FAILSAFE_CAP,
    DEFAULT_LOG_DIR,
    RunConfig,
    failsafe_from_env,
    load_rally_config,
)
from disable_inactive_users.eligibility import SelectionMode
from disable_inactive_users.errors import (
    EmptyFetchResult,
    InvalidUserRecord,
    RallyAPIError,
    UpdateFailure,
)
from disable_inactive_users.logs import setup_logging
from disable_inactive_users.rally import RallyClient
from disable_inactive_users.report import log_result
from disable_inactive_users.runner import run
from disable_inactive_users.settings import connection_overrides, failsafe_override, load_settings

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UPDATE_FAILED = 1
EXIT_USAGE = 2
EXIT_NO_USERS = 8
EXIT_INVALID_DATA = 9


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="disable-inactive-users",
        description="List (or, with --reallydoit, disable) Rally users who have been idle for DAYS or more.",
    )
    parser.add_argument(
        "-d", "--days", type=int, required=True,
        help="Total number of days that the users did not access the system",
    )
    parser.add_argument(
        "-t", "--type", dest="request_type", default=None,
        help="Type of Request. No-Access or Blank-Last-Login",
    )
    parser.add_argument(
        "-R", "--reallydoit", action="store_true",
        help="When this option is given the users will be disabled",
    )
    parser.add_argument(
        "--failsafe", type=int, nargs="?", const=DEFAULT_FAILSAFE_CAP, default=None, metavar="N",
        help=f"Touch at most N users (default {DEFAULT_FAILSAFE_CAP} when given without a value)",
    )
    parser.add_argument(
        "--keep-going", action="store_true",
        help="Continue with the next user after a failed disable instead of halting",
    )
    parser.add_argument("--settings", default=None, help="JSON file with private connection overrides")
    parser.add_argument("--log-dir", default=None, help="Directory for the run log file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def _ensure_password(rally_config) -> bool:
    if rally_config.has_credentials:
        return True
    if not rally_config.username:
        logger.error("Set RALLY_API_KEY, or RALLY_USERNAME and RALLY_PASSWORD")
        return False
    logger.info(
        "Password for '%s' at '%s' not found, please enter now",
        rally_config.username,
        rally_config.base_url,
    )
    rally_config.password = getpass.getpass("password: ").strip()
    return bool(rally_config.password)


def resolve_failsafe_cap(cli_value: Optional[int], settings: dict) -> Optional[int]:
    """First configured cap wins: command line, settings file, then environment."""
    if cli_value is not None:
        return cli_value
    from_settings = failsafe_override(settings)
    if from_settings is not None:
        return from_settings
    return failsafe_from_env()


def main(argv: Optional[Sequence[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = build_parser()
    if not argv:
        parser.print_help()
        return EXIT_OK
    args = parser.parse_args(argv)

    load_dotenv()
    log_dir = args.log_dir or os.environ.get("INACTIVE_USERS_LOG_DIR") or DEFAULT_LOG_DIR
    setup_logging(apply=args.reallydoit, log_dir=log_dir, verbose=args.verbose)

    settings = load_settings(args.settings)
    rally_config = load_rally_config(overrides=connection_overrides(settings))
    if not _ensure_password(rally_config):
        return EXIT_USAGE

    try:
        run_config = RunConfig(
            threshold_days=args.days,
            mode=SelectionMode.from_option(args.request_type),
            apply=args.reallydoit,
            failsafe_cap=resolve_failsafe_cap(args.failsafe, settings),
            stop_on_failure=not args.keep_going,
        )
    except ValueError as exc:
        logger.error("Error:\t%s", exc)
        return EXIT_USAGE

    client = RallyClient(rally_config)
    logger.info("Connecting to Rally at:")
    for line in client.describe():
        logger.info(line)

    try:
        result = run(run_config, client)
    except EmptyFetchResult as exc:
        logger.error("Error:\t%s", exc)
        return EXIT_NO_USERS
    except InvalidUserRecord as exc:
        logger.error("Error:\t%s", exc)
        logger.error("No users were ranked, selected or disabled.")
        return EXIT_INVALID_DATA
    except UpdateFailure as failure:
        if failure.result is not None:
            log_result(failure.result)
        return EXIT_UPDATE_FAILED
    except (requests.RequestException, RallyAPIError) as exc:
        logger.error("Error:\tRally request failed: %s", exc)
        return EXIT_UPDATE_FAILED

    if result.nothing_to_do:
        logger.info("Nothing to do; exiting")
        return EXIT_OK

    log_result(result)
    if result.outcomes.failed:
        return EXIT_UPDATE_FAILED
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
