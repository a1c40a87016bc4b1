"""Auth session provider interface consumed by the remote store."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class AuthSessionProvider(Protocol):
    """Supplies the identity of the signed-in user.

    get_current_user_id is the fast lookup (cached session) and may
    return None. resolve_current_user is the slower authoritative check;
    it returns None when nobody is signed in and raises on lookup errors.
    """

    async def get_current_user_id(self) -> str | None: ...

    async def resolve_current_user(self) -> str | None: ...
