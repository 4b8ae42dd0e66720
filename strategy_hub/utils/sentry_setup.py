# strategy_hub/utils/sentry_setup.py
"""
Sentry error monitoring setup.
"""
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.integrations.httpx import HttpxIntegration

from .config import Settings
from .logger import logger

APP_VERSION = "1.0.0"


def init_sentry(settings: Settings) -> bool:
    """Initialize Sentry error monitoring. Returns False when no DSN is configured."""
    if not settings.sentry_dsn:
        logger.info("SENTRY_DSN not set. Error monitoring disabled.")
        return False

    try:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            integrations=[
                FastApiIntegration(),
                SqlalchemyIntegration(),
                HttpxIntegration(),
            ],
            traces_sample_rate=0.1,  # 10% of transactions
            environment=settings.environment,
            release=APP_VERSION,
            send_default_pii=False,
        )
    except sentry_sdk.utils.BadDsn as e:
        logger.warning(f"Failed to initialize Sentry: {e}")
        return False
    logger.info("Sentry error monitoring initialized")
    return True
