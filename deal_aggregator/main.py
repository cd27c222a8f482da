"""
Main entry point for the deal aggregation pipeline.
"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

import yaml

from .models.history import DAY_PATTERN
from .orchestrator import PipelineOrchestrator
from .services.config_manager import ConfigurationManager
from .utils.logging import get_logger, setup_logging


def _day(value: str) -> str:
    if not DAY_PATTERN.match(value):
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="deal_aggregator",
        description="Merge collector output into the deal catalog and its derived artifacts.",
    )
    parser.add_argument(
        "--config",
        help="Path to the configuration file (default: searched in standard locations)",
    )
    parser.add_argument(
        "--day",
        type=_day,
        help="UTC day (YYYY-MM-DD) for the featured seed and history entry",
    )
    parser.add_argument(
        "--validate-config",
        action="store_true",
        help="Validate the configuration file and exit without running the pipeline",
    )
    parser.add_argument(
        "--print-config-template",
        action="store_true",
        help="Print an example configuration as YAML and exit",
    )
    parser.add_argument("--log-dir", default="logs", help="Directory for log files")
    parser.add_argument("--log-level", default="INFO", help="Log level")
    return parser


async def async_main(config_path: Optional[str] = None, day: Optional[str] = None) -> bool:
    """Run the pipeline once and print the run summary as JSON."""
    logger = get_logger("main")
    logger.info("Starting deal aggregation run", extra={"config_path": config_path})

    config = ConfigurationManager(config_path).get_config()
    orchestrator = PipelineOrchestrator(config)
    summary = await orchestrator.run(day)

    print(json.dumps(summary.to_dict(), indent=2))
    return summary.success


def validate_config(config_path: Optional[str] = None) -> str:
    """Check a configuration file and return the path that was validated."""
    manager = ConfigurationManager(config_path)
    manager.validate_config_file(manager.config_path)
    return manager.config_path


def main(argv: Optional[List[str]] = None):
    """Main application entry point."""
    args = build_parser().parse_args(argv)

    if args.print_config_template:
        print(yaml.safe_dump(ConfigurationManager.get_config_template(), sort_keys=False))
        return

    setup_logging(log_dir=args.log_dir, log_level=args.log_level)
    logger = get_logger("main")

    if args.validate_config:
        try:
            path = validate_config(args.config)
        except ValueError as e:
            logger.error("Configuration invalid", extra={"error": str(e)})
            print(f"Configuration error: {e}", file=sys.stderr)
            sys.exit(1)
        print(f"Configuration OK: {path}")
        return

    try:
        success = asyncio.run(async_main(args.config, args.day))
    except KeyboardInterrupt:
        print("\nShutdown requested by user")
        sys.exit(1)
    except (ValueError, FileNotFoundError) as e:
        logger.error("Configuration error", extra={"error": str(e)})
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    if not success:
        sys.exit(1)


if __name__ == "__main__":
    main()
