import json
import logging
from typing import Any, Dict, Optional

import redis

from .config import REDIS_URL

logger = logging.getLogger(__name__)

_client: Optional[redis.Redis] = None


def get_redis() -> Optional[redis.Redis]:
    global _client
    if not REDIS_URL:
        return None
    if _client is None:
        _client = redis.from_url(REDIS_URL, decode_responses=True)
    return _client


def booking_event(event_type: str, booking, user_id: str) -> Dict[str, Any]:
    return {
        "type": event_type,
        "booking_id": booking.id,
        "robot_id": booking.robot_id,
        "user_id": user_id,
        "start_time": booking.start_time.isoformat(),
        "end_time": booking.end_time.isoformat(),
    }


def publish_booking_event(event: Dict[str, Any]) -> None:
    """Publish a booking event for realtime listeners.

    Goes to the robot's channel and the owner's notification channel. Redis is
    optional, so failures are logged and never block the request.
    """
    r = get_redis()
    if r is None:
        return
    message = json.dumps(event)
    try:
        r.publish(f"robot:{event['robot_id']}:bookings", message)
        r.publish(f"user:{event['user_id']}:notifications", message)
    except redis.RedisError:
        logger.warning("Could not publish %s for booking %s", event["type"], event["booking_id"], exc_info=True)
