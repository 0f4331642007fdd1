"""
Validate the service configuration and region table without starting the server.

Run via: python -m clusterlcm.cli.check_config

Exits non-zero when the region table is malformed or the settings cannot
serve requests (missing default region, ssl without token, missing git token).
"""

import logging
import sys

from pydantic import ValidationError

from clusterlcm.config import load_region_table, settings, validate_startup_config

# Use stdlib logging; structlog is configured by the server lifespan only
logger = logging.getLogger("clusterlcm.check_config")
logging.basicConfig(level=logging.INFO, format="%(message)s")


def check() -> int:
    try:
        regions = load_region_table(settings.regions_file)
    except (ValidationError, ValueError, TypeError) as e:
        logger.error("Region table %s is invalid: %s", settings.regions_file, e)
        return 1

    try:
        validate_startup_config(settings, regions)
    except ValueError as e:
        logger.error("Configuration is invalid: %s", e)
        return 1

    logger.info("Region table: %d regions", len(regions.max_az))
    for region, max_az in sorted(regions.max_az.items()):
        logger.info("  %s: %d", region, max_az)
    logger.info("Configuration OK")
    return 0


if __name__ == "__main__":
    sys.exit(check())
