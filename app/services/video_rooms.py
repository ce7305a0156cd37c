"""Daily.co room allocation and meeting tokens."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)


class VideoNotConfiguredError(RuntimeError):
    """Raised when DAILY_API_KEY is missing."""


class VideoServiceError(RuntimeError):
    """Raised when the Daily API fails."""


@dataclass
class VideoRoom:
    name: str
    url: str


def room_name_for(appointment_id: str) -> str:
    return f"consult-{appointment_id}"


def _headers() -> dict[str, str]:
    key = (settings.daily_api_key or "").strip()
    if not key:
        raise VideoNotConfiguredError("Video service is not configured")
    return {"Authorization": f"Bearer {key}"}


def _post(path: str, payload: dict) -> dict:
    headers = _headers()
    try:
        response = httpx.post(
            f"{settings.daily_api_base.rstrip('/')}{path}",
            json=payload,
            headers=headers,
            timeout=settings.http_timeout_seconds,
        )
    except httpx.HTTPError as exc:
        raise VideoServiceError(f"Daily request failed: {exc}") from exc
    if response.status_code >= 400:
        logger.error("Daily API %s failed: HTTP %s %s", path, response.status_code, response.text[:200])
        raise VideoServiceError(f"Daily returned HTTP {response.status_code}")
    return response.json()


def create_room(appointment_id: str, expires_at: int) -> VideoRoom:
    data = _post(
        "/rooms",
        {
            "name": room_name_for(appointment_id),
            "privacy": "private",
            "properties": {"exp": expires_at, "enable_screenshare": True, "enable_chat": True},
        },
    )
    return VideoRoom(name=data["name"], url=data["url"])


def create_meeting_token(room_name: str, user_name: str, is_owner: bool) -> str:
    expires_at = int(time.time()) + settings.video_token_ttl_minutes * 60
    data = _post(
        "/meeting-tokens",
        {
            "properties": {
                "room_name": room_name,
                "user_name": user_name,
                "is_owner": is_owner,
                "exp": expires_at,
            }
        },
    )
    token = data.get("token")
    if not token:
        raise VideoServiceError("Daily response did not include a token")
    return token
