"""
Domain: user profiles and the acting identity.

A profile belongs to an authenticated user and carries the user's role, the
decoded capability matrix and an optional managing-admin reference. Agents
created by a company owner point at that owner through admin_id; everyone else
is their own company.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .permissions import PermissionMatrix

BUYER_ROLE: str = "buyer"


@dataclass(frozen=True, slots=True)
class Profile:
    user_id: str
    role: Optional[str] = None
    full_name: Optional[str] = None
    email: Optional[str] = None
    admin_id: Optional[str] = None  # lookup only, not ownership
    permissions: PermissionMatrix = field(default_factory=PermissionMatrix.empty)

    @property
    def company_id(self) -> str:
        """Tenant scope for everything this user creates or reads."""
        return self.admin_id or self.user_id

    @property
    def is_buyer(self) -> bool:
        return self.role == BUYER_ROLE

    @property
    def display_name(self) -> Optional[str]:
        if not self.full_name:
            return None
        return self.full_name.split()[0]


@dataclass(frozen=True, slots=True)
class Identity:
    """An authenticated user as returned by the auth backend."""

    user_id: str
    email: Optional[str] = None
    first_name: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Actor:
    """
    Who is performing a mutation.

    Built by the authorization gate from a verified identity and profile; the
    services never accept a tenant id from client input.
    """

    user_id: str
    company_id: str
    display_name: Optional[str] = None

    @classmethod
    def from_identity(cls, identity: Identity, profile: Profile) -> "Actor":
        return cls(
            user_id=identity.user_id,
            company_id=profile.company_id,
            display_name=identity.first_name or profile.display_name,
        )
