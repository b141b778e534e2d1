"""CLI entry point for the Slack digest pipeline."""

import argparse
import logging
import re
import sys
from datetime import datetime, timedelta, timezone

from dotenv import load_dotenv

from src.config import ConfigError, DigestConfig
from src.digest import PROMPT_TEMPLATES
from src.logging_config import configure_logging
from src.orchestrator import DigestOrchestrator
from src.slack import ChannelResolver, RetryPolicy, SlackGateway, SlackSyncError
from src.storage import PersistenceError, PostgresRepository

logger = logging.getLogger(__name__)

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)([dhms])")
_DURATION_UNITS = {"d": "days", "h": "hours", "m": "minutes", "s": "seconds"}


def parse_from_date(value: str, now: datetime | None = None) -> datetime:
    """Parse a --from-date value into an aware datetime.

    Accepts a calendar date (``YYYY-MM-DD``, local midnight) or a duration
    before now such as ``3d``, ``12h`` or ``1h30m``.

    Raises:
        ValueError: If the value matches neither form.
    """
    value = value.strip()
    try:
        return datetime.strptime(value, "%Y-%m-%d").astimezone()
    except ValueError:
        pass

    parts = _DURATION_PART.findall(value)
    if not parts or "".join(num + unit for num, unit in parts) != value:
        raise ValueError(
            f"invalid --from-date {value!r}: use YYYY-MM-DD or a duration like 3d, 12h"
        )
    delta = timedelta()
    for number, unit in parts:
        delta += timedelta(**{_DURATION_UNITS[unit]: float(number)})
    return (now or datetime.now(timezone.utc)) - delta


def _list_channels(config: DigestConfig, repository: PostgresRepository) -> int:
    resolver = ChannelResolver(
        SlackGateway(token=config.slack_token),
        repository,
        RetryPolicy(
            page_delay=config.page_delay,
            rate_limit_delay=config.rate_limit_delay,
            max_retries=config.rate_limit_retries,
        ),
    )
    try:
        channels = resolver.list_channels()
    except SlackSyncError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    for info in channels:
        visibility = "private" if info.is_private else "public"
        print(f"{info.name}\t{info.remote_id}\t{visibility}")
    return 0


def main(argv: list[str] | None = None) -> int:
    load_dotenv()

    parser = argparse.ArgumentParser(description="Run the Slack digest pipeline")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set logging level (overrides LOG_LEVEL env var)",
    )
    parser.add_argument(
        "--focus",
        default="default",
        help=f"Digest focus ({', '.join(sorted(PROMPT_TEMPLATES))}; default: default)",
    )
    parser.add_argument(
        "--from-date",
        help="Fetch from this point instead of the stored watermark "
        "(YYYY-MM-DD or a duration like 3d, 12h)",
    )
    parser.add_argument(
        "--list-channels",
        action="store_true",
        help="List channels visible to the bot and exit",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the digest instead of emailing it",
    )
    args = parser.parse_args(argv)
    configure_logging(level_override=args.log_level)

    since_override = None
    if args.from_date:
        try:
            since_override = parse_from_date(args.from_date)
        except ValueError as e:
            parser.error(str(e))

    try:
        config = DigestConfig.from_env()
        channels = [] if args.list_channels else config.channels_for_focus(args.focus)
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    if args.focus not in PROMPT_TEMPLATES:
        logger.warning("Unknown focus %r, using default channels and template", args.focus)

    repository = PostgresRepository(
        host=config.db_host,
        port=config.db_port,
        dbname=config.db_name,
        user=config.db_user,
        password=config.db_password,
    )
    try:
        repository.ensure_schema()
    except PersistenceError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    try:
        if args.list_channels:
            return _list_channels(config, repository)

        orchestrator = DigestOrchestrator.from_config(config, repository=repository)
        result = orchestrator.run(
            channels,
            focus=args.focus,
            since_override=since_override,
            dry_run=args.dry_run,
        )
    finally:
        repository.close()

    print("\n--- Pipeline Summary ---")
    for channel in result.channels:
        if channel.success:
            print(
                f"  #{channel.channel_name}: OK (new {channel.fetched}, "
                f"stored {channel.persisted_loaded}, saved {channel.saved})"
            )
        else:
            print(f"  #{channel.channel_name}: SKIPPED ({channel.error})")
    for step in result.steps:
        status = "SKIPPED" if step.skipped else ("OK" if step.success else "FAILED")
        print(f"  {step.name}: {status} ({step.duration_seconds}s)")
        for key, value in step.details.items():
            print(f"    {key}: {value}")
        if step.error:
            print(f"    error: {step.error}")

    if args.dry_run and result.digest_text is not None:
        print("\n--- Dry Run ---")
        print(f"Subject: {result.subject}")
        print()
        print(result.digest_text)

    succeeded = result.success and not result.all_channels_skipped
    if result.all_channels_skipped:
        print("\nNo channel could be synced")
    overall = "SUCCESS" if succeeded else "FAILURE"
    print(f"\nResult: {overall}")

    return 0 if succeeded else 1


if __name__ == "__main__":
    sys.exit(main())
