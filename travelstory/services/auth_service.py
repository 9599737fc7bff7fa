"""
TravelStory Backend — Auth Service
===================================

What:  Account registration, login, and bearer-token issue/verification.
How:   Passwords are hashed with bcrypt (cost factor from settings, 10 by
       default). Tokens are HS256 JWTs whose `sub` claim is the user id and
       whose `exp` is `access_token_expire_hours` after issue.
Who:   Called by the auth routes and by the `get_current_user_id` dependency.

bcrypt is CPU-bound, so hashing and checking run in Starlette's threadpool
instead of on the event loop.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

import bcrypt
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from travelstory.config import Settings
from travelstory.exceptions import (
    AuthError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from travelstory.models.user import User

logger = logging.getLogger(__name__)

# bcrypt ignores everything past 72 bytes; newer releases reject longer input
_BCRYPT_MAX_BYTES = 72


def _missing(**fields: Optional[str]) -> List[str]:
    return [name for name, value in fields.items() if not value or not str(value).strip()]


class AuthService:
    """
    Credential handling and token lifecycle.

    Responsibilities:
        - register(): create an account and issue a token
        - login(): check credentials and issue a token
        - verify_token(): resolve a bearer token to a user id
        - get_current_user(): load the user a verified token refers to
    """

    def __init__(self, settings: Settings):
        self.secret = settings.access_token_secret
        self.algorithm = settings.jwt_algorithm
        self.expires = timedelta(hours=settings.access_token_expire_hours)
        self.bcrypt_rounds = settings.bcrypt_rounds

    # ── Password hashing ──────────────────────────────────────────────────

    def _hash_password_sync(self, password: str) -> str:
        password_bytes = password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
        salt = bcrypt.gensalt(rounds=self.bcrypt_rounds)
        return bcrypt.hashpw(password_bytes, salt).decode("utf-8")

    @staticmethod
    def _verify_password_sync(password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(
                password.encode("utf-8")[:_BCRYPT_MAX_BYTES],
                password_hash.encode("utf-8"),
            )
        except ValueError:
            # Stored value is not a bcrypt hash
            return False

    async def hash_password(self, password: str) -> str:
        return await run_in_threadpool(self._hash_password_sync, password)

    async def verify_password(self, password: str, password_hash: str) -> bool:
        return await run_in_threadpool(self._verify_password_sync, password, password_hash)

    # ── Tokens ────────────────────────────────────────────────────────────

    def create_access_token(self, user_id: uuid.UUID) -> str:
        now = datetime.now(timezone.utc)
        claims = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + self.expires,
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def verify_token(self, token: Optional[str]) -> uuid.UUID:
        """
        Resolve a bearer token to the user id it was issued for.

        Raises:
            AuthError (401): token missing, malformed, expired, badly signed,
                             or its subject is not a user id
        """
        if not token:
            raise AuthError(message="Missing authentication token")

        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            logger.info("Rejected token: %s", str(e))
            raise AuthError(message="Invalid or expired token")

        subject = payload.get("sub")
        try:
            return uuid.UUID(str(subject))
        except (TypeError, ValueError):
            raise AuthError(message="Invalid token payload")

    # ── Accounts ──────────────────────────────────────────────────────────

    async def _find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def register(
        self,
        db: AsyncSession,
        full_name: str,
        email: str,
        password: str,
    ) -> Tuple[User, str]:
        """
        Create an account and issue its first token.

        The email pre-check gives the common case a clear error; the unique
        constraint on users.email rejects a concurrent duplicate at flush.

        Raises:
            ValidationError: any field empty
            ConflictError:   email already registered
        """
        missing = _missing(fullName=full_name, email=email, password=password)
        if missing:
            raise ValidationError.missing_fields(missing)

        email = email.strip()
        if await self._find_by_email(db, email) is not None:
            raise ConflictError(message="Email already exists", context={"field": "email"})

        user = User(
            full_name=full_name.strip(),
            email=email,
            password_hash=await self.hash_password(password),
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            logger.info("Concurrent registration for %s rejected by unique constraint", email)
            raise ConflictError(message="Email already exists", context={"field": "email"})
        except SQLAlchemyError as e:
            logger.error("Database error creating account: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})

        logger.info("Account created: %s", user.id)
        return user, self.create_access_token(user.id)

    async def login(self, db: AsyncSession, email: str, password: str) -> Tuple[User, str]:
        """
        Check credentials and issue a token shaped like the registration one.

        Raises:
            ValidationError: either field empty
            NotFoundError:   no account with that email (reported as 400)
            AuthError:       wrong password (reported as 400)
        """
        missing = _missing(email=email, password=password)
        if missing:
            raise ValidationError.missing_fields(missing)

        user = await self._find_by_email(db, email.strip())
        if user is None:
            raise NotFoundError(resource="user", message="User not found", status_code=400)

        if not await self.verify_password(password, user.password_hash):
            raise AuthError(message="Invalid password", status_code=400)

        logger.info("Login succeeded: %s", user.id)
        return user, self.create_access_token(user.id)

    async def get_current_user(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        """
        Load the account a verified token points at.

        Raises:
            AuthError (401): the account no longer exists
        """
        user = await db.get(User, user_id)
        if user is None:
            raise AuthError(message="User no longer exists")
        return user
