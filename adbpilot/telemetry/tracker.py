from posthog import Posthog
from typing import Optional
from uuid import uuid4
import os
import logging
from .events import TelemetryEvent

logger = logging.getLogger("adbpilot-telemetry")

HOST = "https://eu.i.posthog.com"
# Anonymous id for this process only; nothing is written to disk.
RUN_ID = str(uuid4())

_posthog: Optional[Posthog] = None


def get_project_api_key() -> str:
    return os.environ.get("ADBPILOT_POSTHOG_KEY", "")


def is_telemetry_enabled():
    telemetry_enabled = os.environ.get("ADBPILOT_TELEMETRY_ENABLED", "false")
    enabled = telemetry_enabled.lower() in ["true", "1", "yes", "y"] and bool(get_project_api_key())
    logger.debug(f"Telemetry enabled: {enabled}")
    return enabled


def get_client() -> Posthog:
    global _posthog
    if _posthog is None:
        _posthog = Posthog(
            project_api_key=get_project_api_key(),
            host=HOST,
            disable_geoip=True,
        )
    return _posthog


def capture(event: TelemetryEvent):
    try:
        if not is_telemetry_enabled():
            logger.debug(f"Telemetry disabled, skipping capture of {event}")
            return
        event_name = event.__class__.__name__
        get_client().capture(
            distinct_id=RUN_ID, event=event_name, properties=event.model_dump(mode="json")
        )
        logger.debug(f"Captured event: {event_name} with properties: {event}")
    except Exception as e:
        logger.error(f"Error capturing event: {e}")


def flush():
    try:
        if not is_telemetry_enabled():
            logger.debug(f"Telemetry disabled, skipping flush")
            return
        get_client().flush()
        logger.debug(f"Flushed telemetry data")
    except Exception as e:
        logger.error(f"Error flushing telemetry data: {e}")
