"""Shared fixtures: fake Twitch endpoints, in-memory stores, and a wired TestClient."""

import os
from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from datetime import datetime

import httpx
import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("TWITCH_CLIENT_ID", "test-client-id")
os.environ.setdefault("TWITCH_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret")
os.environ.setdefault("DATABASE_URL", "postgresql://localhost:5432/twitchdash_test")
os.environ.setdefault("APP_URL", "https://dash.example.com")

from twitchdash.app import create_app  # noqa: E402
from twitchdash.core.config import get_settings  # noqa: E402
from twitchdash.core.dependencies import (  # noqa: E402
    get_stats_service,
    get_twitch_api,
    get_twitch_link_service,
    get_user_repository,
)
from twitchdash.core.errors import IdentityPersistError, TokenPersistError  # noqa: E402
from twitchdash.models import (  # noqa: E402
    TWITCH_PROVIDER,
    Stream,
    StreamViewer,
    TwitchUser,
    User,
    UserToken,
    Viewer,
)
from twitchdash.services import (  # noqa: E402
    AuthService,
    StatsService,
    TwitchAPIClient,
    TwitchLinkService,
)

USER_ID = "7d4a6c1e-3b2f-4e8a-9c5d-0f1e2a3b4c5d"


# ============================================
# Fake Twitch
# ============================================


@dataclass
class FakeTwitch:
    """Programmable stand-in for the Twitch token and Helix users endpoints."""

    token_status: int = 200
    token_body: dict = field(
        default_factory=lambda: {
            "access_token": "tok",
            "refresh_token": "ref",
            "expires_in": 3600,
            "token_type": "bearer",
        }
    )
    users_status: int = 200
    users_body: dict = field(
        default_factory=lambda: {"data": [{"login": "streamer1", "id": "999"}]}
    )
    raise_on_token: Exception | None = None
    requests: list[httpx.Request] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/oauth2/token":
            if self.raise_on_token is not None:
                raise self.raise_on_token
            return httpx.Response(self.token_status, json=self.token_body)
        if request.url.path == "/helix/users":
            return httpx.Response(self.users_status, json=self.users_body)
        return httpx.Response(404, json={"message": "not found"})

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


@pytest.fixture
def fake_twitch() -> FakeTwitch:
    return FakeTwitch()


@pytest.fixture
def settings():
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture
def twitch_api(fake_twitch: FakeTwitch, settings) -> TwitchAPIClient:
    return TwitchAPIClient(
        client_id=settings.twitch_client_id,
        client_secret=settings.twitch_client_secret,
        redirect_uri=settings.twitch_redirect_uri,
        http=httpx.AsyncClient(transport=httpx.MockTransport(fake_twitch.handler)),
    )


# ============================================
# In-memory stores
# ============================================


class InMemoryUserStore:
    """UserRepository double keeping the same all-or-nothing link semantics."""

    def __init__(self, users: list[User] | None = None) -> None:
        self.users: dict[str, User] = {u.id: u for u in users or []}
        self.tokens: dict[tuple[str, str], UserToken] = {}
        self.fail_identity = False
        self.fail_token = False
        self.writes = 0

    async def get_user(self, user_id: str) -> User | None:
        return self.users.get(user_id)

    async def get_token(self, user_id: str, provider: str = TWITCH_PROVIDER) -> UserToken | None:
        return self.tokens.get((user_id, provider))

    async def link_twitch(
        self,
        user_id: str,
        twitch_user: TwitchUser,
        access_token: str,
        refresh_token: str,
        expires_at: datetime,
    ) -> None:
        if self.fail_identity or user_id not in self.users:
            raise IdentityPersistError()
        if self.fail_token:
            raise TokenPersistError()
        self.writes += 1
        self.users[user_id] = replace(
            self.users[user_id], twitch_username=twitch_user.login, twitch_id=twitch_user.id
        )
        self.tokens[(user_id, TWITCH_PROVIDER)] = UserToken(
            user_id=user_id,
            provider=TWITCH_PROVIDER,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=expires_at,
        )

    async def unlink_twitch(self, user_id: str) -> bool:
        user = self.users.get(user_id)
        if user is None or user.twitch_id is None:
            return False
        self.users[user_id] = replace(user, twitch_username=None, twitch_id=None)
        self.tokens.pop((user_id, TWITCH_PROVIDER), None)
        return True


class InMemoryStatsRepository:
    """StatsRepository double over plain lists."""

    def __init__(
        self,
        streams: list[Stream] | None = None,
        viewers: list[Viewer] | None = None,
        attendance: list[StreamViewer] | None = None,
    ) -> None:
        self.streams = streams or []
        self.viewers = viewers or []
        self.attendance = attendance or []

    def _viewer_ids(self, user_id: str) -> set[str]:
        return {v.id for v in self.viewers if v.user_id == user_id}

    async def list_streams(self, user_id: str, limit: int | None = None) -> list[Stream]:
        streams = sorted(
            (s for s in self.streams if s.user_id == user_id),
            key=lambda s: s.start_time,
            reverse=True,
        )
        return streams[:limit] if limit is not None else streams

    async def count_streams(self, user_id: str) -> int:
        return len([s for s in self.streams if s.user_id == user_id])

    async def get_stream(self, stream_id: str, user_id: str) -> Stream | None:
        for s in self.streams:
            if s.id == stream_id and s.user_id == user_id:
                return s
        return None

    async def list_stream_viewers(self, stream_id: str) -> list[tuple[StreamViewer, Viewer]]:
        by_id = {v.id: v for v in self.viewers}
        rows = [(sv, by_id[sv.viewer_id]) for sv in self.attendance if sv.stream_id == stream_id]
        return sorted(rows, key=lambda r: r[0].minutes_watched, reverse=True)

    async def count_viewers(self, user_id: str) -> int:
        return len(self._viewer_ids(user_id))

    async def count_viewers_by_type(self, user_id: str) -> dict[str, int]:
        counts: dict[str, int] = {}
        for v in self.viewers:
            if v.user_id == user_id:
                counts[v.viewer_type] = counts.get(v.viewer_type, 0) + 1
        return counts

    async def list_attendance(self, user_id: str) -> list[StreamViewer]:
        # stream_viewers.user_id is the owner of the stream
        stream_ids = {s.id for s in self.streams if s.user_id == user_id}
        return [sv for sv in self.attendance if sv.stream_id in stream_ids]

    async def list_viewers(self, user_id: str) -> list[Viewer]:
        result = []
        for v in self.viewers:
            if v.user_id != user_id:
                continue
            attendance = [sv for sv in self.attendance if sv.viewer_id == v.id]
            result.append(replace(v, attendance=attendance))
        return result


@pytest.fixture
def user_store() -> InMemoryUserStore:
    return InMemoryUserStore([User(id=USER_ID, email="streamer@example.com")])


@pytest.fixture
def stats_repo() -> InMemoryStatsRepository:
    return InMemoryStatsRepository()


# ============================================
# App
# ============================================


@pytest.fixture
def auth_service(settings) -> AuthService:
    return AuthService(secret_key=settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


@pytest.fixture
def app(settings, twitch_api, user_store, stats_repo):
    app = create_app()
    app.dependency_overrides[get_twitch_api] = lambda: twitch_api
    app.dependency_overrides[get_twitch_link_service] = lambda: TwitchLinkService(
        twitch_api, user_store
    )
    app.dependency_overrides[get_user_repository] = lambda: user_store
    app.dependency_overrides[get_stats_service] = lambda: StatsService(stats_repo)
    return app


@pytest.fixture
def client(app) -> Iterator[TestClient]:
    # No context manager: the lifespan (real DB connect) is not run
    yield TestClient(app, follow_redirects=False)


@pytest.fixture
def logged_in(client: TestClient, auth_service: AuthService, settings) -> TestClient:
    client.cookies.set(settings.session_cookie_name, auth_service.create_session_token(USER_ID))
    return client
