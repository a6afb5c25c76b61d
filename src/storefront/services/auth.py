"""
Registration, login and profile lookup.

Every check that can fail on input alone runs before the store is touched,
so a rejected registration never leaves a partial record behind.
"""

from dataclasses import dataclass
from typing import Optional

from storefront.db import crud, models
from storefront.db.database import guarded
from storefront.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from storefront.services.ports import UserStore
from storefront.services.security import (
    BcryptHasher,
    JwtTokenIssuer,
    PasswordHasher,
    TokenIssuer,
)
from storefront.utils.logger import get_logger
from storefront.utils.validators import validate_email, validate_password

_logger = get_logger(__name__)


@dataclass(frozen=True)
class AuthResult:
    user: models.UserSummary
    token: str


class AuthService:
    def __init__(
        self,
        store: Optional[UserStore] = None,
        hasher: Optional[PasswordHasher] = None,
        tokens: Optional[TokenIssuer] = None,
    ):
        self.store = store if store is not None else crud
        self.hasher = hasher if hasher is not None else BcryptHasher()
        self.tokens = tokens if tokens is not None else JwtTokenIssuer()

    async def register(self, name: str, email: str, password: str) -> AuthResult:
        name = (name or "").strip()
        email = crud.normalize_email(email)
        if not name:
            raise ValidationError("Please enter your name", field="name")
        if not validate_email(email):
            raise ValidationError("Please enter a valid email", field="email")
        if not validate_password(password):
            raise ValidationError("Please enter a strong password", field="password")

        if await guarded(self.store.get_user_by_email(email)) is not None:
            raise ConflictError("User already exists")

        password_hash = await self.hasher.hash(password)
        user = await guarded(self.store.create_user(name, email, password_hash))
        _logger.info(f"Registered user {user.id}")
        return AuthResult(user=user.summary(), token=self.tokens.issue(user.id))

    async def login(self, email: str, password: str) -> AuthResult:
        """
        NotFoundError for an unknown email, AuthenticationError for a wrong
        password. Callers may render both the same way.
        """
        user = await guarded(self.store.get_user_by_email(crud.normalize_email(email)))
        if user is None:
            raise NotFoundError("User doesn't exists")
        if not await self.hasher.verify(password or "", user.password_hash):
            _logger.info(f"Rejected login for user {user.id}")
            raise AuthenticationError("Invalid credentials")
        _logger.info(f"User {user.id} logged in")
        return AuthResult(user=user.summary(), token=self.tokens.issue(user.id))

    async def get_profile(self, user_id: str) -> models.UserSummary:
        user = await guarded(self.store.get_user(user_id))
        if user is None:
            raise NotFoundError("User not found")
        return user.summary()

    def authenticate(self, token: str) -> str:
        """Resolve a bearer token to the user id it was issued for."""
        if not token:
            raise AuthenticationError("Not Authorized Login Again")
        return self.tokens.verify(token)
