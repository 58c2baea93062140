"""
CLI interface for the YouTube Live Scheduler.
"""

import argparse
import json
import logging
import platform
import sys
from importlib.metadata import PackageNotFoundError, version as package_version
from typing import List, Optional

from agents.broadcast_agent import BroadcastAgent
from agents.orchestrator import OrchestratorAgent
from config.settings import Settings
from models.stream import StreamDefinitionSet
from publishers.registry import PublisherResolver
from schedulers.stream_scheduler import StreamScheduler, parse_schedule
from storage.credential_store import CredentialError
from tools.auth_tools import create_authorizer
from tools.youtube_tools import YouTubeLiveClient
from utils.error_utils import ConfigurationError
from utils.logging_utils import logging_session

# Setup logging
logger = logging.getLogger(__name__)

PACKAGE_NAME = "youtube-live-scheduler"


def print_success(message: str) -> None:
    """Print success message."""
    print(f"[SUCCESS] {message}")


def print_error(message: str) -> None:
    """Print error message."""
    print(f"[ERROR] {message}", file=sys.stderr)


def print_info(message: str) -> None:
    """Print info message."""
    print(f"[INFO] {message}")


def get_version() -> str:
    try:
        return package_version(PACKAGE_NAME)
    except PackageNotFoundError:
        return "development"


def build_settings(args: argparse.Namespace) -> Settings:
    """Settings from the environment, overridden by any flags given on the command line."""
    overrides = {
        "auth_config": args.auth_config,
        "secrets_cache": args.secrets_cache,
        "subject": args.subject,
        "stream_config": getattr(args, "input", None),
    }
    settings_kwargs = {key: value for key, value in overrides.items() if value is not None}

    # Boolean flags only ever switch a setting on
    for flag in ("headless", "dry_run", "debug"):
        if getattr(args, flag, False):
            settings_kwargs[flag] = True
    if getattr(args, "publish", False):
        settings_kwargs["publish"] = True

    return Settings(**settings_kwargs)


def login_command(settings: Settings) -> int:
    """Force a fresh authorization and cache the resulting tokens."""
    if settings.headless:
        print_info("headless mode uses service-account credentials, which are never cached")

    authorizer = create_authorizer(settings, force=not settings.headless)
    transport = authorizer.obtain_transport()
    transport.ensure_fresh()

    if settings.headless:
        print_success("service-account credentials are valid")
    else:
        print_success(f"logged in. tokens cached in {settings.secrets_cache}")
    return 0


def start_command(settings: Settings, now: bool = False) -> int:
    """Create broadcasts for every configured stream, immediately or on schedule."""
    streams = StreamDefinitionSet.from_file(settings.stream_config)
    logger.info(f"loaded {len(streams)} stream configurations from {settings.stream_config}")

    if settings.dry_run:
        logger.info("dry-run enabled. no broadcasts will be created")

    if not now:
        # Fail on a bad schedule before prompting for a login
        for stream in streams:
            parse_schedule(stream.schedule, timezone=settings.timezone)

    authorizer = create_authorizer(settings)
    client = YouTubeLiveClient(authorizer.obtain_transport())

    agent = BroadcastAgent(
        client,
        publishers=PublisherResolver(),
        dry_run=settings.dry_run,
        publish_enabled=settings.publish
    )

    if now:
        results = OrchestratorAgent(streams, agent).run_now()
        failed = [r["stream_name"] for r in results if not r["success"]]
        if failed:
            print_error(f"{len(failed)} stream(s) had errors: {', '.join(failed)}")
        else:
            print_success(f"processed {len(results)} stream(s)")
        return 0

    scheduler = StreamScheduler(
        agent.create_and_publish,
        max_workers=settings.scheduler_max_workers,
        misfire_grace_time=settings.scheduler_misfire_grace_time,
        timezone=settings.timezone
    )
    OrchestratorAgent(streams, agent, scheduler=scheduler).run_scheduled()
    return 0


def version_command() -> int:
    """Print version information as JSON."""
    print(json.dumps({
        "version": get_version(),
        "python": platform.python_version(),
        "platform": f"{platform.system().lower()}/{platform.machine().lower()}"
    }, indent=2))
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="yls",
        description="Schedule YouTube live broadcasts and publish them to your website",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  yls login                                     # Authorize and cache tokens
  yls start -i streams.yaml                     # Run on each stream's schedule
  yls start -i streams.yaml --now               # Create every broadcast once, now
  yls start -i streams.yaml --publish           # Also publish each broadcast
  yls --dry-run start -i streams.yaml --now     # Log what would be created
  yls version                                   # Show version information
        """
    )

    parser.add_argument("--auth-config", help="OAuth2 client secrets JSON (service-account key with --headless)")
    parser.add_argument("--secrets-cache", help="File used to cache OAuth2 tokens")
    parser.add_argument("--headless", action="store_true", help="Authenticate with a service account")
    parser.add_argument("--subject", help="Delegated subject for the service account")
    parser.add_argument("--dry-run", action="store_true", help="Log broadcasts instead of creating them")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging (noisy)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Login command
    subparsers.add_parser("login", help="Force a fresh login and cache the tokens")

    # Start command
    start_parser = subparsers.add_parser("start", help="Start scheduling live broadcasts")
    start_parser.add_argument("-i", "--input", help="YAML file describing the streams (default: ~/.yls.yaml)")
    start_parser.add_argument("-n", "--now", action="store_true", help="Create every broadcast once and exit")
    start_parser.add_argument("-p", "--publish", action="store_true", help="Publish broadcasts with each stream's publisher")

    # Version command
    subparsers.add_parser("version", help="Show version information")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI function."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "version":
        return version_command()

    try:
        settings = build_settings(args)
    except ValueError as e:
        print_error(f"Invalid configuration: {e}")
        return 2

    with logging_session(settings):
        try:
            if args.command == "login":
                return login_command(settings)

            if args.command == "start":
                return start_command(settings, now=args.now)

            print_error(f"Unknown command: {args.command}")
            parser.print_help()
            return 1

        except ConfigurationError as e:
            logger.error(f"configuration error: {e}")
            print_error(str(e))
            return 2
        except CredentialError as e:
            logger.error(f"unable to obtain credentials: {e}")
            print_error(str(e))
            return 3
        except KeyboardInterrupt:
            print_info("\nOperation cancelled by user")
            return 130


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
