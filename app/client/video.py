from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class VideoSession:
    appointment_id: str
    room_name: str
    room_url: str
    token: str
    is_owner: bool = False


class VideoRoomClient:
    """Join/leave wrapper around the server's video-call endpoints."""

    def __init__(self, api) -> None:
        self.api = api

    def join(self, appointment_id: str) -> VideoSession:
        self.api.post(f"/video-call/create-room/{appointment_id}")
        data = self.api.get(f"/video-call/meeting-token/{appointment_id}")
        self.api.put(f"/video-call/call-status/{appointment_id}", json={"status": "started"})
        logger.info("Joined video room %s", data["room_name"])
        return VideoSession(
            appointment_id=appointment_id,
            room_name=data["room_name"],
            room_url=data["room_url"],
            token=data["token"],
            is_owner=bool(data.get("is_owner")),
        )

    def leave(self, session: VideoSession) -> None:
        self.api.put(f"/video-call/call-status/{session.appointment_id}", json={"status": "ended"})
