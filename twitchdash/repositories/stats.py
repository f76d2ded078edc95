"""Repository for streams, viewers, and stream_viewers tables (read-only)."""

from __future__ import annotations

import logging

import asyncpg

from twitchdash.models import Stream, StreamViewer, Viewer

logger = logging.getLogger(__name__)

_STREAM_COLUMNS = "id, user_id, title, game_name, start_time, end_time, peak_viewers"


def _stream(row: asyncpg.Record) -> Stream:
    return Stream(**{**dict(row), "id": str(row["id"]), "user_id": str(row["user_id"])})


def _stream_viewer(row: asyncpg.Record) -> StreamViewer:
    return StreamViewer(
        stream_id=str(row["stream_id"]),
        viewer_id=str(row["viewer_id"]),
        minutes_watched=float(row["minutes_watched"] or 0),
        chat_messages=row["chat_messages"] or 0,
        first_seen=row["first_seen"],
        last_seen=row["last_seen"],
    )


class StatsRepository:
    """SQL reads backing the dashboard pages. Every query is scoped by the owning user."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    # ==================== Streams ====================

    async def list_streams(self, user_id: str, limit: int | None = None) -> list[Stream]:
        """Streams newest first, optionally capped to ``limit``."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f"SELECT {_STREAM_COLUMNS} FROM streams "  # noqa: S608
                "WHERE user_id = $1::uuid ORDER BY start_time DESC LIMIT $2",
                user_id,
                limit,
            )
            return [_stream(r) for r in rows]

    async def count_streams(self, user_id: str) -> int:
        async with self.pool.acquire() as conn:
            count = await conn.fetchval(
                "SELECT COUNT(*) FROM streams WHERE user_id = $1::uuid", user_id
            )
            return int(count or 0)

    async def get_stream(self, stream_id: str, user_id: str) -> Stream | None:
        """Get one stream, only if it belongs to ``user_id``."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {_STREAM_COLUMNS} FROM streams "  # noqa: S608
                "WHERE id = $1::uuid AND user_id = $2::uuid",
                stream_id,
                user_id,
            )
            return _stream(row) if row else None

    async def list_stream_viewers(self, stream_id: str) -> list[tuple[StreamViewer, Viewer]]:
        """Attendance rows of one stream with their viewer, most minutes first."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT
                    sv.stream_id, sv.viewer_id, sv.minutes_watched, sv.chat_messages,
                    sv.first_seen, sv.last_seen,
                    v.user_id, v.username, v.viewer_type, v.first_seen AS viewer_first_seen
                FROM stream_viewers sv
                JOIN viewers v ON v.id = sv.viewer_id
                WHERE sv.stream_id = $1::uuid
                ORDER BY sv.minutes_watched DESC
                """,
                stream_id,
            )
            return [
                (
                    _stream_viewer(r),
                    Viewer(
                        id=str(r["viewer_id"]),
                        user_id=str(r["user_id"]),
                        username=r["username"],
                        viewer_type=r["viewer_type"],
                        first_seen=r["viewer_first_seen"],
                    ),
                )
                for r in rows
            ]

    # ==================== Viewers ====================

    async def count_viewers(self, user_id: str) -> int:
        async with self.pool.acquire() as conn:
            count = await conn.fetchval(
                "SELECT COUNT(*) FROM viewers WHERE user_id = $1::uuid", user_id
            )
            return int(count or 0)

    async def count_viewers_by_type(self, user_id: str) -> dict[str, int]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT viewer_type, COUNT(*) AS n FROM viewers "
                "WHERE user_id = $1::uuid GROUP BY viewer_type",
                user_id,
            )
            return {r["viewer_type"]: int(r["n"]) for r in rows}

    async def list_attendance(self, user_id: str) -> list[StreamViewer]:
        """Every stream_viewers row belonging to ``user_id``."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT stream_id, viewer_id, minutes_watched, chat_messages, "
                "first_seen, last_seen "
                "FROM stream_viewers WHERE user_id = $1::uuid",
                user_id,
            )
            return [_stream_viewer(r) for r in rows]

    async def list_viewers(self, user_id: str) -> list[Viewer]:
        """Viewers newest first, each with its attendance rows attached."""
        async with self.pool.acquire() as conn:
            viewer_rows = await conn.fetch(
                "SELECT id, user_id, username, viewer_type, first_seen FROM viewers "
                "WHERE user_id = $1::uuid ORDER BY first_seen DESC",
                user_id,
            )
            attendance_rows = await conn.fetch(
                """
                SELECT sv.stream_id, sv.viewer_id, sv.minutes_watched, sv.chat_messages,
                       sv.first_seen, sv.last_seen
                FROM stream_viewers sv
                JOIN viewers v ON v.id = sv.viewer_id
                WHERE v.user_id = $1::uuid
                """,
                user_id,
            )

        viewers = {
            str(r["id"]): Viewer(**{**dict(r), "id": str(r["id"]), "user_id": str(r["user_id"])})
            for r in viewer_rows
        }
        for r in attendance_rows:
            sv = _stream_viewer(r)
            viewer = viewers.get(sv.viewer_id)
            if viewer is not None:
                viewer.attendance.append(sv)
        return list(viewers.values())
