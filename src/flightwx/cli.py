"""CLI entry point: run the weather-check workflow once, or accept a reschedule."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from dotenv import load_dotenv

from flightwx.config import WorkflowSettings, load_workflow_settings
from flightwx.db.engine import SessionLocal, get_engine, init_db
from flightwx.events import LoggingEventSink
from flightwx.exceptions import FlightwxError
from flightwx.fetch.cache import TTLCache
from flightwx.fetch.openweather import OpenWeatherClient
from flightwx.notify.email import LogOnlyDispatcher, RetryingDispatcher, SmtpConfig, SmtpDispatcher
from flightwx.reschedule.llm_config import load_ranking_config
from flightwx.reschedule.ranking import LLMRanker
from flightwx.storage.bookings import SqlBookingStore
from flightwx.workflow import (
    WorkflowDependencies,
    WorkflowOptions,
    accept_reschedule,
    run_weather_check_workflow,
)

logger = logging.getLogger(__name__)


def build_dependencies(
    settings: WorkflowSettings,
    ranking_config: str | None = None,
) -> WorkflowDependencies:
    """Wire the production collaborators from environment and config files."""
    get_engine()
    store = SqlBookingStore(SessionLocal)

    weather = OpenWeatherClient.from_env(
        cache=TTLCache(ttl_seconds=settings.weather_cache_ttl_s),
        timeout=settings.weather_timeout_s,
    )
    ranker = LLMRanker(load_ranking_config(ranking_config), tz=settings.timezone)

    try:
        smtp = SmtpConfig.from_env()
        dispatcher = RetryingDispatcher(SmtpDispatcher(smtp, timeout=settings.smtp_timeout_s))
    except ValueError as exc:
        logger.warning("%s Notifications will be logged only.", exc)
        dispatcher = LogOnlyDispatcher()

    return WorkflowDependencies(
        store=store,
        weather=weather,
        ranker=ranker,
        dispatcher=dispatcher,
        events=LoggingEventSink(),
        settings=settings,
    )


def cmd_run(args: argparse.Namespace) -> int:
    options = WorkflowOptions(
        booking_ids=args.booking_ids or None,
        hours_ahead=args.hours_ahead,
        batch_size=args.batch_size,
        dry_run=args.dry_run,
        force_conflict=args.force_conflict,
    )
    settings = load_workflow_settings(args.profile)
    deps = build_dependencies(settings, args.ranking_config)
    run = run_weather_check_workflow(deps, options)
    print(json.dumps(run.model_dump(mode="json"), indent=2))
    return 1 if run.errors else 0


def cmd_accept(args: argparse.Namespace) -> int:
    settings = load_workflow_settings(args.profile)
    deps = build_dependencies(settings)
    booking = accept_reschedule(deps, args.booking_id, args.candidate_id)
    print(f"Booking {booking.id} confirmed for {booking.scheduled_time.isoformat()}")
    return 0


def main() -> None:
    """CLI entry point."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        prog="flightwx",
        description="Weather safety checks and rescheduling for flight training bookings",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--profile", default=None,
        help=(
            "Workflow profile from config/workflow.yaml "
            "(default: env FLIGHTWX_PROFILE or 'default')"
        ),
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # run subcommand
    run_parser = subparsers.add_parser("run", help="Check weather for due bookings once")
    run_parser.add_argument(
        "--booking", action="append", dest="booking_ids", metavar="ID",
        help="Only check this booking (repeatable)",
    )
    run_parser.add_argument("--hours-ahead", type=int, help="Look-ahead window in hours")
    run_parser.add_argument("--batch-size", type=int, help="Bookings processed concurrently")
    run_parser.add_argument(
        "--dry-run", action="store_true", help="Do not send notifications"
    )
    run_parser.add_argument(
        "--force-conflict", action="store_true",
        help="Treat every safe result as unsafe (exercise the reschedule flow)",
    )
    run_parser.add_argument(
        "--ranking-config", default=None,
        help="Ranking config name (default: env FLIGHTWX_RANKING_CONFIG or 'default')",
    )

    # accept subcommand
    accept_parser = subparsers.add_parser("accept", help="Accept a reschedule option")
    accept_parser.add_argument("booking_id")
    accept_parser.add_argument("candidate_id", type=int)

    # init-db subcommand
    subparsers.add_parser("init-db", help="Create database tables (development)")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        if args.command == "init-db":
            init_db()
            sys.exit(0)
        elif args.command == "run":
            sys.exit(cmd_run(args))
        elif args.command == "accept":
            sys.exit(cmd_accept(args))
    except (FlightwxError, KeyError, ValueError, FileNotFoundError) as exc:
        print(f"Error: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
