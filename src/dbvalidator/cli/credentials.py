"""
Settings resolution and logging setup for the CLI.

Connection credentials come from the YAML file with RECORD_DB_* and
REPLICA_DB_* environment variables taking precedence, so passwords can
stay out of the file.
"""

import argparse
import logging
import os
import sys

from dbvalidator.config import ValidatorSettings, load_config
from dbvalidator.errors import ConfigurationError
from dbvalidator.utils.logging import setup_logging as _setup_logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "dbvalidator.yaml"


def setup_logging(
    log_level: str = "INFO",
    log_file: str | None = None,
    json_format: bool = False,
) -> None:
    """
    Setup logging configuration

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional rotating log file
        json_format: Emit JSON lines instead of coloured text
    """
    _setup_logging(level=log_level, log_file=log_file, json_format=json_format)


def resolve_config_path(args: argparse.Namespace) -> str:
    return args.config or os.getenv("DBVALIDATOR_CONFIG") or DEFAULT_CONFIG_PATH


def get_settings(args: argparse.Namespace) -> ValidatorSettings:
    """
    Load validator settings, exiting on unusable configuration

    Args:
        args: Parsed command-line arguments

    Returns:
        ValidatorSettings with engine config and both connections
    """
    path = resolve_config_path(args)

    try:
        settings = load_config(path)
    except (ConfigurationError, ValueError) as e:
        logger.error(f"Invalid configuration in {path}: {e}")
        sys.exit(1)

    # Validate passwords
    if not settings.record.password:
        logger.error("Record database password not provided (set RECORD_DB_PASSWORD)")
        sys.exit(1)
    if not settings.replica.password:
        logger.error("Replica database password not provided (set REPLICA_DB_PASSWORD)")
        sys.exit(1)

    return settings
