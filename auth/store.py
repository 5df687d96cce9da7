"""
Credential store — SQLAlchemy-backed persistence for user identities.

Uniqueness of ``username`` and ``email`` is guaranteed by the table's
unique constraints on their normalized (case-folded) forms, not by the
lookups callers may do beforehand.  A constraint hit on insert is reported
as ``ConflictError`` naming the field.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from auth.errors import ConflictError
from auth.password import PasswordPolicy, hash_password_async, verify_password_async
from database.models import UQ_NORMALIZED_USERNAME, User, normalize

logger = logging.getLogger(__name__)

_dummy_hash: Optional[str] = None

# Postgres names the constraint, SQLite names table.column.
_USERNAME_MARKERS = (UQ_NORMALIZED_USERNAME, "users.normalized_username")


def _conflicting_field(exc: IntegrityError) -> str:
    # Only look before the DETAIL part: it echoes the offending value.
    message = str(exc.orig).lower().split("detail:", 1)[0]
    if any(marker in message for marker in _USERNAME_MARKERS):
        return "username"
    return "email"


class CredentialStore:
    def __init__(
        self,
        session: AsyncSession,
        policy: Optional[PasswordPolicy] = None,
        rounds: Optional[int] = None,
    ) -> None:
        self._session = session
        self._policy = policy or PasswordPolicy.from_config()
        self._rounds = rounds

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self._session.execute(
            select(User).where(User.normalized_email == normalize(email))
        )
        return result.scalar_one_or_none()

    async def find_by_username(self, username: str) -> Optional[User]:
        result = await self._session.execute(
            select(User).where(User.normalized_username == normalize(username))
        )
        return result.scalar_one_or_none()

    async def find_by_id(self, user_id: str) -> Optional[User]:
        return await self._session.get(User, user_id)

    async def count(self) -> int:
        result = await self._session.execute(select(func.count()).select_from(User))
        return result.scalar_one()

    async def create(
        self,
        username: str,
        email: str,
        display_name: str,
        password: str,
    ) -> User:
        """
        Hash ``password`` and insert a new user.

        Raises ``PasswordPolicyError`` if the password is rejected and
        ``ConflictError`` if the username or email is already taken.  The
        insert runs in a savepoint: on conflict only it is rolled back, and
        earlier work in the caller's session survives.
        """
        self._policy.check(password)
        password_hash = await hash_password_async(password, self._rounds)

        user = User(
            id=str(uuid.uuid4()),
            username=username,
            normalized_username=normalize(username),
            email=email,
            normalized_email=normalize(email),
            display_name=display_name,
            password_hash=password_hash,
            image_url=None,
        )
        try:
            async with self._session.begin_nested():
                self._session.add(user)
        except IntegrityError as exc:
            field = _conflicting_field(exc)
            logger.info("Insert for %s rejected by unique constraint on %s", username, field)
            raise ConflictError(field) from exc

        logger.debug("Created user %s (%s)", user.username, user.id)
        return user

    async def verify_password(self, user: Optional[User], password: str) -> bool:
        """
        Check ``password`` against ``user``'s hash.

        With no user, a throwaway hash is checked instead and ``False`` is
        returned, so a missing account costs the same time as a wrong password.
        """
        global _dummy_hash
        if user is None:
            if _dummy_hash is None:
                _dummy_hash = await hash_password_async("dummy-password", self._rounds)
            await verify_password_async(password, _dummy_hash)
            return False
        return await verify_password_async(password, user.password_hash)
