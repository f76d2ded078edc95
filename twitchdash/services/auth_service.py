"""JWT session service"""

import logging
import uuid
from datetime import UTC, datetime, timedelta

import jwt

logger = logging.getLogger(__name__)


class AuthService:
    """Issue and verify the signed session cookie that identifies a dashboard user"""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expire_days: int = 30,
        audience: str | None = None,
    ):
        if not secret_key:
            raise ValueError("JWT secret key cannot be empty")

        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_days = expire_days
        self.audience = audience

    def create_session_token(self, user_id: str) -> str:
        """Create a session JWT whose subject is the local user id"""
        now = datetime.now(UTC)
        payload = {
            "sub": user_id,
            "exp": now + timedelta(days=self.expire_days),
            "iat": now,
        }
        if self.audience:
            payload["aud"] = self.audience

        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        logger.debug(f"Session created for user: {user_id}")
        return token

    def verify_token(self, token: str) -> dict | None:
        """Verify a session JWT and return the payload if valid"""
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                audience=self.audience,
                options={"verify_aud": self.audience is not None},
            )
        except jwt.ExpiredSignatureError:
            logger.warning("Session token expired")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid session token: {e}")
            return None

        if not payload.get("sub"):
            logger.warning("Session token missing sub")
            return None
        return payload

    def resolve_user_id(self, token: str | None) -> str | None:
        """Return the user id carried by a session token, or None.

        User ids are UUIDs; a token whose subject is anything else does not
        identify a user.
        """
        if not token:
            return None
        payload = self.verify_token(token)
        if not payload:
            return None

        user_id = str(payload["sub"])
        try:
            uuid.UUID(user_id)
        except ValueError:
            logger.warning(f"Session token sub is not a user id: {user_id!r}")
            return None
        return user_id
