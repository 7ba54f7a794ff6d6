"""Command line entry point."""

import argparse
import logging
import sys

import uvicorn
from fastapi import FastAPI

from chetter.config import Config, ConfigurationError, load_config
from chetter.github.app import GitHubApp
from chetter.github.client import GitHubClientConfig
from chetter.refs.batch_delete import BatchDeletionManager
from chetter.refs.client import RepositoryClientFactory
from chetter.refs.memory import InMemoryControllerFactory
from chetter.server import create_app
from chetter.webhooks.dispatcher import ControllerFactory, EventDispatcher
from chetter.workers.tasks import BackgroundTaskTracker

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def build_app(config: Config, dry_run: bool = False) -> FastAPI:
    """Wire the configured components into a webhook application.

    Raises:
        ConfigurationError: If the app's private key can't be loaded
    """
    controllers: ControllerFactory
    if dry_run:
        logger.warning("Dry run: refs are kept in memory, GitHub is not touched")
        controllers = InMemoryControllerFactory()
    else:
        app = GitHubApp(
            config.github.app_id,
            config.github.load_private_key(),
            GitHubClientConfig(
                base_url=config.github.api_url, timeout=config.github.timeout
            ),
        )
        controllers = RepositoryClientFactory(
            app, delete_timeout=config.refs.attempt_timeout
        )

    deleter = BatchDeletionManager(
        strategy=config.refs.delete_strategy,
        chunk_size=config.refs.chunk_size,
        max_concurrency=config.refs.max_concurrency,
        attempt_timeout=config.refs.attempt_timeout,
    )
    tracker = BackgroundTaskTracker()
    dispatcher = EventDispatcher(controllers, tracker, deleter)

    return create_app(
        dispatcher,
        tracker,
        webhook_secret=config.github.webhook_secret,
        shutdown_timeout=config.system.shutdown_timeout,
        events_path=config.server.events_path,
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="chetter",
        description="Track pull request history in git refs",
    )
    parser.add_argument("-c", "--config", help="path to config file", metavar="FILE")
    parser.add_argument("--log-level", help="override the configured log level")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="keep refs in memory instead of writing them to GitHub",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    if not args.config:
        print("Error: config file (-c,--config) required", file=sys.stderr)
        sys.exit(1)

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    log_level = (args.log_level or config.system.log_level.value).upper()
    logging.basicConfig(level=getattr(logging, log_level, logging.INFO), format=LOG_FORMAT)

    try:
        app = build_app(config, dry_run=args.dry_run)
    except ConfigurationError as e:
        logger.error(f"Failed to start: {e}")
        sys.exit(1)

    logger.info(f"Listening on {config.server.host}:{config.server.port}")
    # uvicorn turns SIGINT/SIGTERM into a graceful shutdown, which runs the
    # application's lifespan hook and with it the background task drain.
    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
