"""Sentry initialisation for the tracker API."""

import sentry_sdk
import structlog
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

logger = structlog.get_logger()

_SENSITIVE_HEADERS = {"authorization", "cookie"}
# Free-text fields that may carry client information.
_SENSITIVE_BODY_FIELDS = {"notes", "link"}


def _scrub_event(event: dict, hint: dict) -> dict:
    """Redact auth headers and client free text before an event leaves the process."""
    request = event.get("request", {})
    headers = request.get("headers", {})
    for header in list(headers):
        if header.lower() in _SENSITIVE_HEADERS:
            headers[header] = "[REDACTED]"
    data = request.get("data")
    if isinstance(data, dict):
        for field in _SENSITIVE_BODY_FIELDS & data.keys():
            data[field] = "[REDACTED]"
    return event


def init_sentry(dsn: str | None, environment: str = "development", release: str | None = None) -> None:
    """Call before the FastAPI app is created. Does nothing without a DSN."""
    if not dsn:
        logger.info("sentry.disabled")
        return

    sample_rate = 0.1 if environment == "production" else 1.0
    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        release=release,
        traces_sample_rate=sample_rate,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        send_default_pii=False,
        before_send=_scrub_event,
    )
    sentry_sdk.set_tag("service", "compliance-tracker-api")
    logger.info("sentry.initialized", environment=environment, traces_sample_rate=sample_rate)
