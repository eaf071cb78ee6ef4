"""
Owner scope and session provider interface.

The engine performs no authentication. Whatever signs the user in hands it
an ``OwnerScope`` (opaque user id plus the garden partition key); every
store call is made against that scope.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

from src.modules.shared.exceptions import NotAuthenticatedError


@dataclass(frozen=True)
class OwnerScope:
    user_id: str
    garden_id: int


@runtime_checkable
class SessionProvider(Protocol):
    """Supplies the signed-in owner, or None when nobody is signed in."""

    async def current_scope(self) -> Optional[OwnerScope]:
        ...


class StaticSessionProvider:
    """Session provider with a fixed scope (scripts, tests, single-user setups)."""

    def __init__(self, scope: Optional[OwnerScope] = None) -> None:
        self._scope = scope

    async def current_scope(self) -> Optional[OwnerScope]:
        return self._scope

    def sign_in(self, scope: OwnerScope) -> None:
        self._scope = scope

    def sign_out(self) -> None:
        self._scope = None


async def require_scope(provider: SessionProvider, operation: str) -> OwnerScope:
    """
    Return the current owner scope.

    Raises:
        NotAuthenticatedError: If no owner is signed in
    """
    scope = await provider.current_scope()
    if scope is None:
        raise NotAuthenticatedError(operation)
    return scope
