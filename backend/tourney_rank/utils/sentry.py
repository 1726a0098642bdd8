"""Error reporting for the ranking service.

Stats-aggregation and re-rank failures are captured explicitly by the
services; everything else reaches Sentry through the FastAPI integration.
"""

import logging
import os
from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration

logger = logging.getLogger(__name__)

SERVICE_TAG = "tourney-rank"


def parse_sample_rate(env_var: str, default: float = 0.0) -> float:
    """Read a sampling rate in ``[0, 1]``; bad values fall back to ``default``."""
    raw_value = os.getenv(env_var)
    if raw_value is None:
        return default

    try:
        rate = float(raw_value)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number, using %.2f", env_var, raw_value, default)
        return default

    if not 0.0 <= rate <= 1.0:
        logger.warning("Ignoring %s=%s: outside [0, 1], using %.2f", env_var, rate, default)
        return default
    return rate


def sentry_options(dsn: str) -> Dict[str, Any]:
    environment: Optional[str] = (os.getenv("SENTRY_ENVIRONMENT") or "").strip() or None
    return {
        "dsn": dsn,
        "integrations": [FastApiIntegration()],
        "environment": environment,
        "server_name": SERVICE_TAG,
        "traces_sample_rate": parse_sample_rate("SENTRY_TRACES_SAMPLE_RATE"),
        "profiles_sample_rate": parse_sample_rate("SENTRY_PROFILES_SAMPLE_RATE"),
    }


def init_sentry() -> bool:
    """Start reporting ranking-service errors when ``SENTRY_DSN`` is set.

    Without a DSN the service runs unreported and ``capture_exception`` calls
    in the stats services are no-ops.
    """
    dsn = (os.getenv("SENTRY_DSN") or "").strip()
    if not dsn:
        logger.info("No SENTRY_DSN; ranking errors are only logged")
        return False

    options = sentry_options(dsn)
    sentry_sdk.init(**options)
    logger.info(
        "Reporting ranking errors to Sentry (environment=%s, traces=%.2f)",
        options["environment"] or "default",
        options["traces_sample_rate"],
    )
    return True
