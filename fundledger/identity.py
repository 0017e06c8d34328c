"""Mini README: Principal identity supplied by the authentication layer.

Tokens are issued and verified upstream; this service receives the
principal verbatim (``X-User-Id`` / ``X-User-Role`` headers) and only checks
that an identity is present.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .errors import ValidationError

DEFAULT_ROLE = "Admin"


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated user on whose behalf a request runs."""

    user_id: str
    role: str = DEFAULT_ROLE

    @classmethod
    def from_headers(cls, user_id: Optional[str], role: Optional[str] = None) -> "Principal":
        """Build a principal from raw header values, rejecting blank identities."""

        if user_id is None or not user_id.strip():
            raise ValidationError("Missing user identity.")
        return cls(user_id=user_id.strip(), role=(role or DEFAULT_ROLE).strip() or DEFAULT_ROLE)
