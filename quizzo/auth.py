"""
Authentication context passed into the core.

The trust boundary (HTTP middleware, CLI) builds one AuthContext per request
from whatever token format it uses. Core functions receive it explicitly and
never look at token internals.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from .errors import InputError


@dataclass(frozen=True)
class AuthContext:
    """Authenticated caller: who they are and what role they hold."""

    user_id: UUID
    role: str = "user"

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> AuthContext:
        """Build a context from decoded token claims (any mapping shape)."""
        raw_user_id = claims.get("user_id")
        if not isinstance(raw_user_id, str):
            raise InputError("invalid user id in token")
        try:
            user_id = UUID(raw_user_id)
        except ValueError as e:
            raise InputError("invalid user id in token") from e

        role = claims.get("role") or "user"
        return cls(user_id=user_id, role=str(role))
