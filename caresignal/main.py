#!/usr/bin/env python3
"""CareSignal - Main Entry Point.

Runs one monitoring session: landmark frames in, caregiver alerts out.

Usage:
    python -m caresignal.main [--config CONFIG] [--debug] [--mock]
    caresignal --frames landmarks.jsonl
    face_mesh_exporter | caresignal --frames -

The session watches for:
- Blink bursts (5 = water, 7 = food by default)
- Head gestures (left/right/left/right = washroom, up/down/up/down = emergency)
- Falling asleep and waking up
- Facial expression, reported as time spent per expression
"""

import argparse
import asyncio
import logging
import os
import signal
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from caresignal import __version__
from caresignal.config import Config, get_default_config, load_config
from caresignal.mocks import SCENARIOS, MockLandmarkSource
from caresignal.monitor import PatientMonitor
from caresignal.sources import JsonLinesLandmarkSource

logger = logging.getLogger(__name__)


def setup_logging(config: Config, debug: bool = False) -> None:
    """Configure logging based on config settings.

    Args:
        config: Configuration object
        debug: Enable debug mode
    """
    level = logging.DEBUG if debug else getattr(
        logging, config.logging.level.upper(), logging.INFO
    )

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Console goes to stderr so stdout stays free for piping
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if config.logging.file:
        log_file = config.resolve_path(config.logging.file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=config.logging.max_size_mb * 1024 * 1024,
            backupCount=config.logging.backup_count,
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Reduce verbosity of some noisy libraries
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logger.info(f"Logging configured (level: {logging.getLevelName(level)})")


class CareSignalApp:
    """Main application class for CareSignal.

    Builds the landmark source and the monitor, and manages the session
    lifecycle.
    """

    def __init__(
        self,
        config: Config,
        frames_path: Optional[str] = None,
        scenario: Optional[str] = None,
    ):
        """Initialize the application.

        Args:
            config: Loaded configuration
            frames_path: JSON-lines landmark file, or "-" for stdin
            scenario: Mock scenario name (overrides config)
        """
        self.config = config
        self.frames_path = frames_path
        self.scenario = scenario or config.source.scenario

        self.source = None
        self.monitor: Optional[PatientMonitor] = None

    def _build_source(self):
        if self.frames_path:
            logger.info(f"Reading landmarks from {self.frames_path}")
            return JsonLinesLandmarkSource(self.frames_path)

        if self.config.mock_mode:
            logger.info(f"Mock mode: playing scenario '{self.scenario}'")
            return MockLandmarkSource(
                scenario=self.scenario,
                fps=self.config.source.fps,
                landmarks=self.config.landmarks,
            )

        logger.info("Reading landmarks from stdin")
        return JsonLinesLandmarkSource("-")

    async def start(self) -> None:
        """Run the monitoring session until the source ends."""
        logger.info("=" * 50)
        logger.info(f"CareSignal {__version__} Starting")
        logger.info("=" * 50)

        self.source = self._build_source()
        self.monitor = PatientMonitor(self.config)

        await self.monitor.run(self.source)

        logger.info("Shutdown complete")

    def stop(self) -> None:
        """Request application stop."""
        if self.monitor:
            self.monitor.stop()
        if self.source:
            self.source.stop()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="CareSignal - blink and head-gesture caregiver alerts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Run the demo scenario without a camera
    caresignal --mock

    # Replay recorded landmarks with debug logging
    caresignal --debug --frames session.jsonl

    # Use custom config file
    caresignal --config /path/to/config.yaml --frames -
        """
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to configuration file (default: config.local.yaml or config.yaml)"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging"
    )
    parser.add_argument(
        "--mock", "-m",
        action="store_true",
        help="Use synthetic landmarks (for testing)"
    )
    parser.add_argument(
        "--scenario",
        choices=sorted(SCENARIOS),
        default=None,
        help="Mock scenario to play (implies --mock)"
    )
    parser.add_argument(
        "--frames", "-f",
        default=None,
        metavar="PATH",
        help="JSON-lines landmark file, or - for stdin"
    )
    args = parser.parse_args()

    if args.config and not os.path.exists(args.config):
        print(f"Error: Config file not found: {args.config}")
        sys.exit(1)

    using_defaults = False
    try:
        config = load_config(args.config)
    except FileNotFoundError:
        config = get_default_config()
        using_defaults = True
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if args.mock or args.scenario:
        config.mock_mode = True

    setup_logging(config, args.debug)
    if using_defaults:
        logger.warning("No config file found, using built-in defaults")
    logger.info(f"Mock mode: {config.mock_mode}")

    app = CareSignalApp(config, frames_path=args.frames, scenario=args.scenario)

    def handle_signal(sig, frame):
        logger.info(f"Received signal {sig}")
        app.stop()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        asyncio.run(app.start())
    except KeyboardInterrupt:
        print("\nInterrupted")
    except Exception as e:
        print(f"Error: {e}")
        if args.debug:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
