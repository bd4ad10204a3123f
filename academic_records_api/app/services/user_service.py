"""
Business logic for user accounts.

Accounts exist to obtain tokens: ``signup`` registers an email with a
hashed password, ``login`` checks the password.  Both return an
``AuthPayload``.  Signup tokens are valid longer than login tokens
(see ``Settings``).
"""

import logging

from ..core.config import settings
from ..core.errors import InvalidCredentials
from ..core.security import Identity, hash_password, token_for, verify_password
from ..core.store import EQ, USERS, Condition, EntityStore, StoreQuery
from ..schemas.user import AuthPayload, UserCreate, UserRead
from .validation import parse_payload


class UserService:
    """Account registration and authentication."""

    def __init__(self, store: EntityStore) -> None:
        self.store = store

    async def signup(self, email: str, password: str) -> AuthPayload:
        """Register a new account and return a token for it.

        A duplicate email is rejected by the store's unique index and
        surfaces as ``ValidationFailure``.
        """
        logger = logging.getLogger(__name__)
        data = parse_payload(UserCreate, {"email": email, "password": password})
        logger.info("Registering user %s", data.email)
        record = self.store.create(
            USERS, {"email": data.email, "password": hash_password(data.password)}
        )
        user = UserRead(id=record["id"], email=record["email"])
        token = token_for(Identity(id=user.id, email=user.email), settings.signup_token_expire_minutes)
        return AuthPayload(token=token, user=user)

    async def authenticate(self, email: str, password: str) -> UserRead:
        """Return the account for ``email`` if ``password`` matches.

        Unknown emails and wrong passwords raise the same
        ``InvalidCredentials`` error so that callers cannot tell which
        accounts exist.
        """
        query = StoreQuery(conditions=[Condition("email", EQ, email)], limit=1)
        records = self.store.find(USERS, query)
        if not records or not verify_password(password, records[0]["password"]):
            logging.getLogger(__name__).warning("Failed login for %s", email)
            raise InvalidCredentials()
        return UserRead(id=records[0]["id"], email=records[0]["email"])

    async def login(self, email: str, password: str) -> AuthPayload:
        user = await self.authenticate(email, password)
        token = token_for(Identity(id=user.id, email=user.email), settings.login_token_expire_minutes)
        return AuthPayload(token=token, user=user)

    async def reset_password(self, email: str, password: str) -> bool:
        """Replace the password hash of ``email``; ``False`` if no such account."""
        data = parse_payload(UserCreate, {"email": email, "password": password})
        query = StoreQuery(conditions=[Condition("email", EQ, data.email)], limit=1)
        records = self.store.find(USERS, query)
        if not records:
            return False
        self.store.update_by_id(USERS, records[0]["id"], {"password": hash_password(data.password)})
        logging.getLogger(__name__).info("Password reset for %s", data.email)
        return True
