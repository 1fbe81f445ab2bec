"""Shared utility functions."""
import json
import secrets
import uuid
from datetime import datetime, timezone

from workboard.constants import (
    EVENTS_STREAM,
    INVITE_CODE_ALPHABET,
    INVITE_CODE_LENGTH,
)
from workboard.logging_config import get_logger

logger = get_logger(__name__)


def gen_id(prefix: str = "") -> str:
    """Generate a short prefixed ID."""
    return f"{prefix}{uuid.uuid4().hex[:12]}"


def now_ms() -> int:
    """Get current timestamp in milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def ms_to_iso(value: int | None) -> str | None:
    """Render a millisecond timestamp as an ISO-8601 UTC string."""
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).isoformat()


def iso_to_ms(value: datetime) -> int:
    """Convert an (aware or naive UTC) datetime to milliseconds."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


def generate_invite_code(length: int = INVITE_CODE_LENGTH) -> str:
    """Random alphanumeric workspace invite code."""
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(length))


async def publish_event(event_type: str, data: dict) -> None:
    """Publish an event to the global stream for real-time dashboard updates.

    No-op when Redis is not configured. Failures are logged, never raised:
    the mutation that triggered the event has already been committed.
    """
    from workboard import dependencies

    if dependencies.redis_client is None:
        return
    event = {"type": event_type, **data, "timestamp": now_ms()}
    try:
        await dependencies.redis_client.xadd(EVENTS_STREAM, {"data": json.dumps(event)})
    except Exception as e:
        logger.warning(f"Failed to publish {event_type} event: {e}")
