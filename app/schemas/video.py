from pydantic import BaseModel

from app.models.enums import CallStatus


class VideoRoomOut(BaseModel):
    room_name: str
    room_url: str


class MeetingTokenOut(BaseModel):
    token: str
    room_name: str
    room_url: str
    is_owner: bool = False


class CallStatusRequest(BaseModel):
    status: CallStatus
