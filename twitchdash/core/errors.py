"""Failure kinds of the Twitch account linking workflow.

Every kind carries a human-readable ``message`` that is safe to show the
user; the underlying cause (if any) is chained via ``__cause__`` and only
logged server-side.
"""


class TwitchLinkError(Exception):
    """Base class for linking failures"""

    default_message = "Failed to connect Twitch account"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class MissingCodeError(TwitchLinkError):
    default_message = "No code provided"


class UnauthenticatedError(TwitchLinkError):
    default_message = "Not authenticated"


class TokenExchangeError(TwitchLinkError):
    default_message = "Failed to exchange code for token"


class IdentityFetchError(TwitchLinkError):
    default_message = "Failed to get user data from Twitch"


class IdentityPersistError(TwitchLinkError):
    default_message = "Failed to update user data"


class TokenPersistError(TwitchLinkError):
    default_message = "Failed to store token data"
