"""Application entry point for slackgate."""

import argparse
import asyncio
import signal
import sys
from pathlib import Path

from pydantic import ValidationError

from slackgate.application.services.gateway import build_services
from slackgate.config import (
    ConfigError,
    ConfigFileNotFoundError,
    load_config,
)
from slackgate.infrastructure.logging import get_logger, setup_logging
from slackgate.presentation.http.server import HTTPServer

# Shutdown timeout in seconds
SHUTDOWN_TIMEOUT = 30


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: Command line arguments. If None, uses sys.argv.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        description="slackgate - HTTP gateway for the Slack Web API"
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to configuration file (default: config.yaml)",
    )
    return parser.parse_args(args)


async def main_async(
    config_path: Path,
    shutdown_timeout: float = SHUTDOWN_TIMEOUT,
) -> int:
    """Async main function.

    Args:
        config_path: Path to configuration file.
        shutdown_timeout: Maximum time in seconds to wait for graceful shutdown.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    # 1. Load configuration
    config = load_config(config_path)

    # 2. Initialize logging
    setup_logging(config.logging)
    logger = get_logger(__name__)
    logger.info("Starting slackgate", config_path=str(config_path))
    if not config.slack.token:
        logger.warning("No server-side Slack token, requests must pass ?token=")

    # 3. Initialize components
    services = build_services(config, get_logger)
    http_server = HTTPServer(
        config=config.server,
        services=services,
        logger=get_logger("http_server"),
    )

    # 4. Setup shutdown handling
    shutdown_event = asyncio.Event()

    def signal_handler(sig: signal.Signals) -> None:
        logger.info("Received signal, initiating shutdown", signal=sig.name)
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler, sig)

    try:
        # 5. Start HTTP server and serve until a signal arrives
        await http_server.start()
        logger.info("slackgate started successfully")
        await shutdown_event.wait()

    except asyncio.CancelledError:
        logger.info("Main task cancelled")

    finally:
        # 6. Shutdown
        logger.info("Shutting down")
        try:
            await asyncio.wait_for(http_server.stop(), timeout=shutdown_timeout)
            logger.info("slackgate stopped")
        except TimeoutError:
            logger.warning(
                "Shutdown timed out, forcing termination",
                timeout_seconds=shutdown_timeout,
            )
        services.identity_cache.clear()

    return 0


def main() -> None:
    """Main entry point."""
    args = parse_args()
    config_path = args.config

    try:
        exit_code = asyncio.run(main_async(config_path))
        sys.exit(exit_code)
    except ConfigFileNotFoundError:
        print(f"Error: {config_path} not found", file=sys.stderr)
        sys.exit(1)
    except ConfigError as e:
        print(f"Error: Configuration error: {e}", file=sys.stderr)
        sys.exit(1)
    except ValidationError as e:
        print(f"Error: Configuration validation error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    main()
