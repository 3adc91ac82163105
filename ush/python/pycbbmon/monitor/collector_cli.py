#!/usr/bin/env python3
"""
CloudBerry Backup collector.

Reads plan documents and the history database from the CloudBerry
ProgramData folder and writes scollector-style JSON metric records to
stdout. Diagnostics go to stderr.
"""

import argparse
import logging
import sys

from pycbbmon.monitor.collector import CbbCollector, CollectorPreconditionError
from pycbbmon.monitor.config import load_config


def configure_logging(debug_mode: bool):
    """Configures the root logger. stdout is reserved for metric records."""
    root = logging.getLogger()
    level = logging.DEBUG if debug_mode else logging.INFO
    root.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S"
    )
    handler.setFormatter(formatter)
    root.addHandler(handler)


def build_parser():
    parser = argparse.ArgumentParser(
        description="Emit CloudBerry Backup job metrics for scollector"
    )
    parser.add_argument("--config", default=None, help="Path to cbbmon_config.yaml")
    parser.add_argument("--program-data", default=None, help="CloudBerry ProgramData folder")
    parser.add_argument("--hostname", default=None, help="Value of the host tag")
    parser.add_argument("--file-operations", action="store_true",
                        help="Also report per-file operations of the last session")
    parser.add_argument("--debug", action="store_true", help="Debug logging")
    return parser


def main(argv=None):
    """Main execution function."""
    args = build_parser().parse_args(argv)
    configure_logging(args.debug)
    logger = logging.getLogger("CbbCollectorCLI")

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        logger.error(f"Cannot load config: {e}")
        return 1

    if args.program_data:
        config.program_data = args.program_data
    if args.hostname is not None:
        config.hostname = args.hostname
    if args.file_operations:
        config.file_operations = True

    logger.debug(f"Config: {config}")

    try:
        CbbCollector(config).run()
    except CollectorPreconditionError as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
