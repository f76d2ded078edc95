"""Stream and viewer statistics API routes"""

import logging
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from twitchdash.core.dependencies import get_current_user_id, get_stats_service
from twitchdash.services import StatsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stats", tags=["stats"])


class StreamSummary(BaseModel):
    id: str
    title: str | None
    game_name: str | None
    start_time: datetime
    end_time: datetime | None
    peak_viewers: int
    is_live: bool
    duration_hours: float | None


class DashboardResponse(BaseModel):
    streams_tracked: int
    unique_viewers: int
    total_watch_minutes: int
    messages_per_stream: float
    viewer_types: dict[str, int]
    recent_streams: list[StreamSummary]


class StreamViewerStat(BaseModel):
    viewer_id: str
    username: str
    viewer_type: str
    minutes_watched: int
    chat_messages: int
    first_seen: datetime | None
    last_seen: datetime | None


class StreamDetail(StreamSummary):
    viewers: list[StreamViewerStat]


class ViewerStat(BaseModel):
    id: str
    username: str
    viewer_type: str
    first_seen: datetime | None
    total_minutes_watched: int
    total_chat_messages: int


@router.get("/dashboard")
async def get_dashboard(
    user_id: str = Depends(get_current_user_id),
    stats: StatsService = Depends(get_stats_service),
) -> DashboardResponse:
    """Headline numbers and recent streams for the dashboard"""
    try:
        return DashboardResponse(**await stats.get_dashboard(user_id))
    except Exception:
        raise HTTPException(status_code=500, detail="Failed to fetch statistics") from None


@router.get("/streams")
async def list_streams(
    user_id: str = Depends(get_current_user_id),
    stats: StatsService = Depends(get_stats_service),
) -> list[StreamSummary]:
    try:
        return [StreamSummary(**s) for s in await stats.list_streams(user_id)]
    except Exception:
        raise HTTPException(status_code=500, detail="Failed to fetch statistics") from None


@router.get("/streams/{stream_id}")
async def get_stream(
    stream_id: UUID,
    user_id: str = Depends(get_current_user_id),
    stats: StatsService = Depends(get_stats_service),
) -> StreamDetail:
    """One stream with the viewers who watched it"""
    try:
        detail = await stats.get_stream_detail(str(stream_id), user_id)
    except Exception:
        raise HTTPException(status_code=500, detail="Failed to fetch statistics") from None

    if detail is None:
        raise HTTPException(status_code=404, detail="Stream not found")
    return StreamDetail(**detail)


@router.get("/viewers")
async def list_viewers(
    user_id: str = Depends(get_current_user_id),
    stats: StatsService = Depends(get_stats_service),
) -> list[ViewerStat]:
    """Every viewer with total watch time and chat messages across all streams"""
    try:
        return [ViewerStat(**v) for v in await stats.list_viewers(user_id)]
    except Exception:
        raise HTTPException(status_code=500, detail="Failed to fetch statistics") from None
