"""
Explicit user/organization context.

A Session is built once at login and passed to every operation that writes
to the store or the audit trail, instead of being read from ambient state.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from comax.core.exceptions import ScopeError


@dataclass(frozen=True)
class Session:
    """Who is acting, and on behalf of which organization."""

    username: str
    display_name: str = ""
    user_id: Optional[int] = None
    role: str = "translator"
    organization_id: Optional[int] = None
    organization_name: Optional[str] = None

    def with_organization(self, organization_id: Optional[int],
                          organization_name: Optional[str] = None) -> "Session":
        """Return a copy scoped to another organization."""
        return Session(
            username=self.username,
            display_name=self.display_name,
            user_id=self.user_id,
            role=self.role,
            organization_id=organization_id,
            organization_name=organization_name,
        )

    def require_organization(self) -> int:
        """
        Return the organization scope, failing fast when it is absent.

        Raises:
            ScopeError: If no organization is selected
        """
        if self.organization_id is None:
            raise ScopeError(
                "Organization is required but none is selected",
                details={"username": self.username},
            )
        return self.organization_id

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        return cls(
            username=data["username"],
            display_name=data.get("display_name") or data["username"],
            user_id=data.get("user_id"),
            role=data.get("role") or "translator",
            organization_id=data.get("organization_id"),
            organization_name=data.get("organization_name"),
        )
