"""Local account service.

Registration, login and session restore for devices running without a
remote backend. Accounts and the session live in the local store.
"""

from glucodiary.core.exceptions import AuthenticationError
from glucodiary.core.security import hash_password, verify_password
from glucodiary.logging_config import get_logger
from glucodiary.models.user import User
from glucodiary.schemas.auth import LoginRequest, RegisterRequest
from glucodiary.services.local_store import LocalStore

logger = get_logger(__name__)


class LocalAuthService:
    """Signs local users in and out.

    Also satisfies AuthSessionProvider, so a local identity can be
    supplied wherever a session provider is expected.
    """

    def __init__(self, store: LocalStore):
        self._store = store

    async def register(self, request: RegisterRequest) -> User:
        """Create an account and sign it in.

        Raises:
            AuthenticationError: If the name or email is already registered.
        """
        if await self._store.get_user_by_name(request.name) is not None:
            logger.warning("Registration rejected: name taken")
            raise AuthenticationError("This name is already registered")

        if await self._store.get_user_by_email(request.email) is not None:
            logger.warning("Registration rejected: email taken")
            raise AuthenticationError("This email is already registered")

        user_id = await self._store.create_user(
            request.name,
            request.email,
            hash_password(request.password),
        )
        await self._store.save_session(user_id)

        user = await self._store.get_user_by_id(user_id)
        logger.info("Registered local user", user_id=user_id)
        return user

    async def login(self, request: LoginRequest) -> User:
        """Verify credentials and start a session.

        Raises:
            AuthenticationError: If the name is unknown or the password is wrong.
        """
        user = await self._store.get_user_by_name(request.name)
        if user is None or not verify_password(request.password, user.password_hash):
            logger.warning("Local login failed")
            raise AuthenticationError("Invalid name or password")

        await self._store.save_session(user.id)
        logger.info("Local login", user_id=user.id)
        return user

    async def logout(self, wipe_data: bool = False) -> None:
        """End the session, optionally removing all local data."""
        if wipe_data:
            await self._store.clear_all_data()
        else:
            await self._store.clear_session()
        logger.info("Local logout", wiped=wipe_data)

    async def current_user(self) -> User | None:
        """The user of a live session, or None."""
        session = await self._store.get_session()
        if session is None:
            return None
        user = await self._store.get_user_by_id(session.user_id)
        if user is None:
            # Session points at a deleted account
            await self._store.clear_session()
        return user

    async def get_current_user_id(self) -> str | None:
        session = await self._store.get_session()
        return session.user_id if session else None

    async def resolve_current_user(self) -> str | None:
        user = await self.current_user()
        return user.id if user else None
