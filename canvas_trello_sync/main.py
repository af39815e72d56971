import argparse
import logging
import sys
from pathlib import Path

from canvas_trello_sync.config import load_config, load_settings
from canvas_trello_sync.exceptions import AuthenticationError, ConfigError, SyncError
from canvas_trello_sync.services.canvas import CanvasClient
from canvas_trello_sync.services.sync import run_sync
from canvas_trello_sync.services.trello import TrelloClient

logger = logging.getLogger("canvas_trello_sync")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="canvas-trello-sync",
        description="Create and update Trello cards for Canvas assignments.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Increase logging verbosity")
    parser.add_argument(
        "-c", "--config", type=Path, default=Path("config.toml"), help="Path to the configuration file"
    )
    parser.add_argument("--canvas-access-token", help="Canvas access token [env: CANVAS_ACCESS_TOKEN]")
    parser.add_argument("--trello-api-key", help="Trello API key [env: TRELLO_API_KEY]")
    parser.add_argument("--trello-api-token", help="Trello API token [env: TRELLO_API_TOKEN]")
    parser.add_argument(
        "--dry-run", action="store_true", help="Decide what to change without touching the board"
    )
    return parser


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def _credential(flag_value: str | None, setting: str, env_name: str) -> str:
    value = flag_value or setting
    if not value:
        raise AuthenticationError(f"{env_name} not configured. Pass it as a flag or set it in .env")
    return value


def _log_error_chain(exc: BaseException) -> None:
    logger.error("%s", exc)
    cause = exc.__cause__
    while cause is not None:
        logger.error("Caused by: %s", cause)
        cause = cause.__cause__


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings()
    except ConfigError as e:
        _setup_logging("DEBUG" if args.verbose else "INFO")
        _log_error_chain(e)
        return 1
    _setup_logging("DEBUG" if args.verbose else settings.log_level)

    try:
        canvas_token = _credential(args.canvas_access_token, settings.canvas_access_token, "CANVAS_ACCESS_TOKEN")
        trello_key = _credential(args.trello_api_key, settings.trello_api_key, "TRELLO_API_KEY")
        trello_token = _credential(args.trello_api_token, settings.trello_api_token, "TRELLO_API_TOKEN")

        config = load_config(args.config)
        canvas = CanvasClient(str(config.canvas.graphql_endpoint), canvas_token)
        trello = TrelloClient(trello_key, trello_token)

        counts = run_sync(config, canvas, trello, dry_run=args.dry_run)
    except SyncError as e:
        _log_error_chain(e)
        return 1

    logger.info(
        "Sync complete: assignments=%d created=%d updated=%d up_to_date=%d%s",
        counts.assignments, counts.created, counts.updated, counts.up_to_date,
        " (dry run)" if args.dry_run else "",
    )
    return 0


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
