from datetime import datetime, timedelta, timezone

import jwt
from jwt.exceptions import InvalidTokenError

from core.config import Settings


class TokenVerifier:
    """Issues and verifies the signed tokens carried in the auth cookie.

    The signing key comes from the injected settings; nothing here reads the
    environment directly.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 60) -> None:
        if not secret_key:
            raise ValueError("A token signing key is required")
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenVerifier":
        return cls(
            secret_key=settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
            expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
        )

    def issue(self, user_id: str, expires_delta: timedelta | None = None) -> str:
        expire = datetime.now(timezone.utc) + (
            expires_delta if expires_delta else timedelta(minutes=self.expire_minutes)
        )
        return jwt.encode({"id": user_id, "exp": expire}, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> dict:
        """Return the token claims, raising InvalidTokenError when the token
        is malformed, expired, signed with another key or carries no subject."""
        payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        if not payload.get("id"):
            raise InvalidTokenError("Token has no subject id")
        return payload
