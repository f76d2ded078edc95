"""Stream and viewer statistics for the dashboard pages"""

import logging

from twitchdash.models import Stream
from twitchdash.repositories import StatsRepository

logger = logging.getLogger(__name__)

RECENT_STREAMS_LIMIT = 5


def _stream_dict(stream: Stream) -> dict:
    return {
        "id": stream.id,
        "title": stream.title,
        "game_name": stream.game_name,
        "start_time": stream.start_time,
        "end_time": stream.end_time,
        "peak_viewers": stream.peak_viewers,
        "is_live": stream.is_live,
        "duration_hours": stream.duration_hours,
    }


class StatsService:
    """Aggregate repository reads into API-shaped dicts"""

    def __init__(self, repo: StatsRepository):
        self.repo = repo

    async def get_dashboard(self, user_id: str) -> dict:
        """Headline numbers plus the most recent streams"""
        try:
            streams_tracked = await self.repo.count_streams(user_id)
            unique_viewers = await self.repo.count_viewers(user_id)
            viewer_types = await self.repo.count_viewers_by_type(user_id)
            attendance = await self.repo.list_attendance(user_id)
            recent = await self.repo.list_streams(user_id, limit=RECENT_STREAMS_LIMIT)
        except Exception as e:
            logger.exception(f"Failed to get dashboard for user {user_id}: {e}")
            raise

        total_watch_minutes = sum(sv.minutes_watched for sv in attendance)
        total_messages = sum(sv.chat_messages for sv in attendance)
        messages_per_stream = total_messages / streams_tracked if streams_tracked > 0 else 0

        return {
            "streams_tracked": streams_tracked,
            "unique_viewers": unique_viewers,
            "total_watch_minutes": round(total_watch_minutes),
            "messages_per_stream": round(messages_per_stream, 1),
            "viewer_types": viewer_types,
            "recent_streams": [_stream_dict(s) for s in recent],
        }

    async def list_streams(self, user_id: str) -> list[dict]:
        try:
            streams = await self.repo.list_streams(user_id)
        except Exception as e:
            logger.exception(f"Failed to list streams for user {user_id}: {e}")
            raise
        return [_stream_dict(s) for s in streams]

    async def get_stream_detail(self, stream_id: str, user_id: str) -> dict | None:
        """One stream with its viewers. None if missing or owned by another user."""
        try:
            stream = await self.repo.get_stream(stream_id, user_id)
            if stream is None:
                logger.warning(f"Stream {stream_id} not found or access denied")
                return None
            rows = await self.repo.list_stream_viewers(stream_id)
        except Exception as e:
            logger.exception(f"Failed to get stream {stream_id}: {e}")
            raise

        return {
            **_stream_dict(stream),
            "viewers": [
                {
                    "viewer_id": viewer.id,
                    "username": viewer.username,
                    "viewer_type": viewer.viewer_type,
                    "minutes_watched": round(sv.minutes_watched),
                    "chat_messages": sv.chat_messages,
                    "first_seen": sv.first_seen,
                    "last_seen": sv.last_seen,
                }
                for sv, viewer in rows
            ],
        }

    async def list_viewers(self, user_id: str) -> list[dict]:
        """All viewers with watch time and chat totals, biggest watchers first"""
        try:
            viewers = await self.repo.list_viewers(user_id)
        except Exception as e:
            logger.exception(f"Failed to list viewers for user {user_id}: {e}")
            raise

        viewers.sort(key=lambda v: v.total_minutes_watched, reverse=True)
        return [
            {
                "id": v.id,
                "username": v.username,
                "viewer_type": v.viewer_type,
                "first_seen": v.first_seen,
                "total_minutes_watched": round(v.total_minutes_watched),
                "total_chat_messages": v.total_chat_messages,
            }
            for v in viewers
        ]
