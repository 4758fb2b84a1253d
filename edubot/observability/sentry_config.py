"""Optional Sentry error tracking for the API process"""

import logging
import os
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from starlette.exceptions import HTTPException

from edubot.exceptions import GamificationError, RecordNotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Outcomes of normal student requests, not faults
EXPECTED_ERRORS = (GamificationError, RecordNotFoundError, ValidationError)


def _release() -> str:
    sha = os.getenv("GIT_COMMIT_SHA")
    return f"edubot@{sha[:7]}" if sha else "edubot@dev"


def init_sentry() -> bool:
    """
    Initialize the SDK when ENABLE_SENTRY is set and a DSN is configured

    Returns:
        True if Sentry was initialized
    """
    from edubot import config

    if not config.ENABLE_SENTRY:
        logger.info("Sentry disabled")
        return False
    if not config.SENTRY_DSN:
        logger.warning("ENABLE_SENTRY is set but SENTRY_DSN is empty - error tracking disabled")
        return False

    release = _release()
    sentry_sdk.init(
        dsn=config.SENTRY_DSN,
        environment=config.SENTRY_ENVIRONMENT,
        release=release,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        traces_sample_rate=config.SENTRY_TRACES_SAMPLE_RATE,
        send_default_pii=False,
        before_send=before_send,
    )
    sentry_sdk.set_tag("storage_backend", config.STORAGE_BACKEND)

    logger.info(f"Sentry initialized ({config.SENTRY_ENVIRONMENT}, {release})")
    return True


def before_send(event, hint):
    """Drop expected rule and input errors and 4xx HTTP errors"""
    exc_info = hint.get("exc_info")
    if not exc_info:
        return event

    exc_value = exc_info[1]
    if isinstance(exc_value, EXPECTED_ERRORS):
        return None
    if isinstance(exc_value, HTTPException) and exc_value.status_code < 500:
        return None
    return event


def shutdown_sentry() -> None:
    """Flush pending events before the process exits"""
    client = sentry_sdk.get_client()
    if client.is_active():
        client.flush(timeout=2.0)
