"""
Password hashing and bearer-token capabilities.

Both are stateless and safe to share between concurrent calls.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

import bcrypt
import jwt

from storefront import config
from storefront.errors import AuthenticationError
from storefront.utils.logger import get_logger

_logger = get_logger(__name__)


class PasswordHasher(Protocol):
    async def hash(self, password: str) -> str: ...

    async def verify(self, password: str, hashed: str) -> bool: ...


class TokenIssuer(Protocol):
    def issue(self, user_id: str) -> str: ...

    def verify(self, token: str) -> str: ...


class BcryptHasher:
    """bcrypt with a per-hash salt; checkpw compares in constant time.

    Work runs in a thread so a login never stalls the event loop.
    """

    def __init__(self, rounds: Optional[int] = None):
        self.rounds = rounds or config.BCRYPT_ROUNDS

    async def hash(self, password: str) -> str:
        hashed = await asyncio.to_thread(
            bcrypt.hashpw, password.encode("utf-8"), bcrypt.gensalt(self.rounds)
        )
        return hashed.decode("utf-8")

    async def verify(self, password: str, hashed: str) -> bool:
        if not hashed:
            return False
        try:
            return await asyncio.to_thread(
                bcrypt.checkpw, password.encode("utf-8"), hashed.encode("utf-8")
            )
        except ValueError:
            # stored value is not a bcrypt hash
            return False


class JwtTokenIssuer:
    def __init__(
        self,
        secret: Optional[str] = None,
        algorithm: Optional[str] = None,
        ttl: Optional[timedelta] = None,
    ):
        self.secret = secret or config.SECRET_KEY
        if self.secret == config.DEV_SECRET_KEY:
            _logger.warning("Signing tokens with the development secret; set STOREFRONT_SECRET_KEY")
        self.algorithm = algorithm or config.JWT_ALGORITHM
        self.ttl = ttl or timedelta(minutes=config.TOKEN_TTL_MINUTES)

    def issue(self, user_id: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {"sub": user_id, "iat": now, "exp": now + self.ttl}
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> str:
        """Return the user id carried by the token."""
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.PyJWTError as e:
            raise AuthenticationError("Not Authorized Login Again") from e
        return payload["sub"]
