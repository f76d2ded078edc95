from datetime import UTC, datetime, timedelta

import jwt
import pytest
from pydantic import ValidationError

from twitchdash.core.config import Settings
from twitchdash.services import AuthService

USER_ID = "2b5c1f0e-0000-4000-8000-000000000000"


def _settings(**overrides) -> Settings:
    values = {
        "twitch_client_id": "id",
        "twitch_client_secret": "secret",
        "jwt_secret_key": "jwt",
        "database_url": "postgresql://localhost/db",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_redirect_uri_ignores_trailing_slash_on_app_url():
    settings = _settings(app_url="https://dash.example.com/")

    assert settings.twitch_redirect_uri == "https://dash.example.com/api/twitch/auth"


def test_invalid_log_level_defaults_to_info():
    assert _settings(log_level="chatty").log_level == "INFO"
    assert _settings(log_level="debug").log_level == "DEBUG"


def test_session_token_round_trip():
    auth = AuthService(secret_key="s3cret")

    assert auth.resolve_user_id(auth.create_session_token(USER_ID)) == USER_ID


def test_session_token_signed_with_other_key_is_rejected():
    token = AuthService(secret_key="other").create_session_token(USER_ID)

    assert AuthService(secret_key="s3cret").resolve_user_id(token) is None


def test_expired_session_is_rejected():
    expired = {"sub": USER_ID, "exp": datetime.now(UTC) - timedelta(minutes=1)}
    token = jwt.encode(expired, "s3cret", algorithm="HS256")

    assert AuthService(secret_key="s3cret").resolve_user_id(token) is None


def test_missing_cookie_resolves_to_none():
    assert AuthService(secret_key="s3cret").resolve_user_id(None) is None


def test_audience_is_checked_when_configured():
    supabase_style = jwt.encode(
        {
            "sub": USER_ID,
            "aud": "authenticated",
            "exp": datetime.now(UTC) + timedelta(hours=1),
        },
        "s3cret",
        algorithm="HS256",
    )

    assert AuthService(secret_key="s3cret", audience="authenticated").resolve_user_id(
        supabase_style
    ) == USER_ID
    other = AuthService(secret_key="s3cret", audience="other")
    assert other.resolve_user_id(supabase_style) is None


def test_empty_secret_is_refused():
    with pytest.raises(ValueError):
        AuthService(secret_key="")


def test_session_whose_subject_is_not_a_user_id_is_rejected():
    auth = AuthService(secret_key="s3cret")

    assert auth.resolve_user_id(auth.create_session_token("not-a-uuid")) is None


@pytest.mark.parametrize(
    "field", ["twitch_client_id", "twitch_client_secret", "jwt_secret_key", "database_url"]
)
def test_empty_required_setting_is_refused(field):
    with pytest.raises(ValidationError):
        _settings(**{field: ""})
