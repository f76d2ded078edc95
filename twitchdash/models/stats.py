"""Data models for streams, viewers, and stream_viewers tables."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Stream:
    """A tracked broadcast."""

    id: str
    user_id: str
    start_time: datetime
    end_time: datetime | None = None
    title: str | None = None
    game_name: str | None = None
    peak_viewers: int = 0

    @property
    def is_live(self) -> bool:
        return self.end_time is None

    @property
    def duration_hours(self) -> float | None:
        """Whole hours between start and end, None while live."""
        if self.end_time is None:
            return None
        return round((self.end_time - self.start_time).total_seconds() / 3600)


@dataclass
class StreamViewer:
    """Per-stream attendance row for one viewer."""

    stream_id: str
    viewer_id: str
    minutes_watched: float = 0.0
    chat_messages: int = 0
    first_seen: datetime | None = None
    last_seen: datetime | None = None


@dataclass
class Viewer:
    """A chatter/viewer seen on one of the user's streams."""

    id: str
    user_id: str
    username: str
    viewer_type: str = "viewer"
    first_seen: datetime | None = None
    attendance: list[StreamViewer] = field(default_factory=list)

    @property
    def total_minutes_watched(self) -> float:
        return sum(sv.minutes_watched for sv in self.attendance)

    @property
    def total_chat_messages(self) -> int:
        return sum(sv.chat_messages for sv in self.attendance)
