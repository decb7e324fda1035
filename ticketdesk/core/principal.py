"""
Caller identity handed in by the token verification layer.

WHAT: PrincipalContext is pure data: the user and organization that a
verified bearer token speaks for.

WHY: Keeping it a small immutable value means the access resolver and the
comment store never touch tokens or the HTTP request.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PrincipalContext:
    """
    Decoded caller identity.

    Fields:
    - user_id: Authenticated user
    - organization_id: Tenant the token was issued for
    """

    user_id: Optional[int]
    organization_id: Optional[int]

    @property
    def is_complete(self) -> bool:
        """True when both identifiers are present and positive."""
        return bool(
            self.user_id
            and self.organization_id
            and self.user_id > 0
            and self.organization_id > 0
        )
