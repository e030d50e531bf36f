"""
Actor - the authenticated caller as seen by the services.

The services never look at tokens or HTTP; they receive an Actor
(resolved by portal.core.auth) and check its role at their entry point.
"""

from dataclasses import dataclass
from typing import Optional

from portal.core.errors import NotAuthorized
from portal.schemas.schemas import UserRole


@dataclass(frozen=True)
class Actor:
    user_id: int
    role: UserRole
    login_id: str = ""
    name: str = ""
    research_area: Optional[str] = None

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.student

    @property
    def is_faculty(self) -> bool:
        return self.role == UserRole.faculty

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin

    def require(self, *roles: UserRole, action: str = "perform this action") -> "Actor":
        """Raise NotAuthorized unless the actor holds one of the given roles."""
        if self.role not in roles:
            allowed = " or ".join(r.value for r in roles)
            raise NotAuthorized(f"Only {allowed} can {action}")
        return self
