"""Twitch API client service.

Only the user-token side of Twitch OAuth is used here: the authorization
code is exchanged for a user access token, and that token is used to read
the identity of the account that granted it.
"""

import logging
from dataclasses import dataclass
from urllib.parse import quote, urlencode

import httpx

from twitchdash.core.errors import IdentityFetchError, TokenExchangeError
from twitchdash.models import TwitchUser

logger = logging.getLogger(__name__)

HELIX_BASE = "https://api.twitch.tv/helix"
OAUTH_BASE = "https://id.twitch.tv/oauth2"

# Longest token lifetime accepted from the provider (one year, in seconds)
MAX_TOKEN_LIFETIME = 365 * 24 * 3600


@dataclass
class TokenGrant:
    """Tokens returned by a successful authorization code exchange."""

    access_token: str
    refresh_token: str
    expires_in: int


class TwitchAPIClient:
    """Client for the Twitch OAuth and Helix endpoints.

    Holds one shared httpx client for connection reuse. Every request is
    attempted exactly once and bounded by ``timeout`` seconds.
    """

    SCOPES = [
        "user:read:email",
        "channel:read:subscriptions",
        "moderator:read:followers",
    ]

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        timeout: float = 10.0,
        http: httpx.AsyncClient | None = None,
    ):
        if not client_id or not client_secret:
            raise ValueError("Twitch client_id and client_secret are required")

        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self._http = http or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Close the shared HTTP client. Call on app shutdown."""
        await self._http.aclose()

    # ------------------------------------------------------------------
    # OAuth flow
    # ------------------------------------------------------------------

    def generate_oauth_url(self, state: str | None = None) -> str:
        """Build the authorize URL the browser is sent to."""
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.SCOPES),
        }
        if state:
            params["state"] = state
        return f"{OAUTH_BASE}/authorize?{urlencode(params, quote_via=quote)}"

    async def exchange_code(self, code: str) -> TokenGrant:
        """Exchange an authorization code for a user access token.

        Raises:
            TokenExchangeError: on transport failure, a non-200 response,
                or a response without ``access_token``.
        """
        try:
            response = await self._http.post(
                f"{OAUTH_BASE}/token",
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "code": code,
                    "grant_type": "authorization_code",
                    "redirect_uri": self.redirect_uri,
                },
            )
        except httpx.TimeoutException as e:
            logger.error("Timeout while exchanging code for token")
            raise TokenExchangeError("Timed out exchanging code with Twitch") from e
        except httpx.HTTPError as e:
            logger.error(f"HTTP error exchanging code: {type(e).__name__}: {e}")
            raise TokenExchangeError() from e

        data = _json_or_empty(response)

        if response.status_code != 200:
            logger.error(f"Failed to exchange code: {response.status_code} {response.text}")
            raise TokenExchangeError(data.get("message"))

        access_token = data.get("access_token")
        if not access_token:
            logger.error("No access_token in token response")
            raise TokenExchangeError(data.get("message"))

        try:
            expires_in = int(data.get("expires_in") or 0)
        except (TypeError, ValueError, OverflowError):
            logger.warning(f"Unparseable expires_in: {data.get('expires_in')!r}")
            expires_in = 0
        if not 0 <= expires_in <= MAX_TOKEN_LIFETIME:
            logger.warning(f"expires_in out of range: {expires_in}")
            expires_in = 0

        return TokenGrant(
            access_token=access_token,
            refresh_token=data.get("refresh_token") or "",
            expires_in=expires_in,
        )

    async def get_authenticated_user(self, access_token: str) -> TwitchUser:
        """Return the identity that owns ``access_token``.

        Raises:
            IdentityFetchError: on transport failure, a non-200 response,
                or an empty ``data`` list.
        """
        try:
            response = await self._http.get(
                f"{HELIX_BASE}/users",
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Client-Id": self.client_id,
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"Helix GET /users error: {type(e).__name__}: {e}")
            raise IdentityFetchError() from e

        if response.status_code != 200:
            logger.error(f"Failed to fetch user: {response.status_code} {response.text}")
            raise IdentityFetchError()

        users = _json_or_empty(response).get("data") or []
        if not isinstance(users, list) or not users:
            logger.error(f"Helix returned no user for a freshly issued token: {users!r}")
            raise IdentityFetchError()

        user = users[0]
        if not isinstance(user, dict) or not user.get("id") or not user.get("login"):
            logger.error(f"Malformed Helix user: {user}")
            raise IdentityFetchError()
        return TwitchUser(id=str(user["id"]), login=user["login"])


def _json_or_empty(response: httpx.Response) -> dict:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}
