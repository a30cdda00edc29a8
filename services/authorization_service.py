"""
Authorization gate.

Every mutating operation goes through `authorize`, which:
1. Resolves the caller from the access token (else Unauthenticated -> login).
2. Requires a profile (else Unauthenticated -> login).
3. Keeps portal buyers out of dashboard modules (Forbidden -> portal).
4. Checks the capability matrix (else Forbidden -> landing area).

The gate never mutates state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from domain.errors import Forbidden, Unauthenticated
from domain.permissions import can_perform
from domain.profile import Actor, Identity, Profile

logger = logging.getLogger(__name__)


class IdentityResolver(Protocol):
    def resolve(self, access_token: Optional[str]) -> Optional[Identity]:
        ...


class ProfileSource(Protocol):
    def get_profile(self, user_id: str) -> Optional[Profile]:
        ...


@dataclass(frozen=True, slots=True)
class AuthenticatedUser:
    """Identity-only verdict; profile may be missing."""

    identity: Identity
    profile: Optional[Profile] = None


@dataclass(frozen=True, slots=True)
class AuthorizedContext:
    """Verdict of a successful capability check."""

    identity: Identity
    profile: Profile

    @property
    def actor(self) -> Actor:
        return Actor.from_identity(self.identity, self.profile)


class AuthorizationGate:
    def __init__(
        self,
        resolver: IdentityResolver,
        profiles: ProfileSource,
        *,
        login_path: str = "/login",
        landing_path: str = "/dashboard",
        portal_path: str = "/portal",
    ) -> None:
        self._resolver = resolver
        self._profiles = profiles
        self.login_path = login_path
        self.landing_path = landing_path
        self.portal_path = portal_path

    def optional_identity(self, access_token: Optional[str]) -> Optional[AuthenticatedUser]:
        """Resolve the caller if possible; never raises for a missing session."""

        identity = self._resolver.resolve(access_token)
        if identity is None:
            return None
        return AuthenticatedUser(identity=identity, profile=self._profiles.get_profile(identity.user_id))

    def require_authenticated(self, access_token: Optional[str]) -> AuthenticatedUser:
        """Identity check only, for routes that need no capability."""

        user = self.optional_identity(access_token)
        if user is None:
            raise Unauthenticated("No valid session", redirect_to=self.login_path)
        return user

    def authorize(
        self,
        access_token: Optional[str],
        module: str,
        action: Optional[str] = None,
    ) -> AuthorizedContext:
        """
        Check that the caller may perform `action` on `module`.

        Raises:
            Unauthenticated: no valid session, or no profile attached to it.
            Forbidden: valid identity without the capability.
        """

        user = self.require_authenticated(access_token)
        profile = user.profile
        if profile is None:
            raise Unauthenticated("No profile for user", redirect_to=self.login_path)

        if profile.is_buyer:
            raise Forbidden("Buyers cannot access the dashboard", redirect_to=self.portal_path)

        if not can_perform(profile.permissions, module, action):
            logger.info(
                "Capability denied",
                extra={"user_id": user.identity.user_id, "module": module, "action": action},
            )
            raise Forbidden(
                f"Missing permission: {module}.{action}" if action else f"Missing permission: {module}",
                redirect_to=self.landing_path,
            )

        return AuthorizedContext(identity=user.identity, profile=profile)


__all__ = [
    "AuthenticatedUser",
    "AuthorizationGate",
    "AuthorizedContext",
    "IdentityResolver",
    "ProfileSource",
]
