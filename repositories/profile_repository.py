"""
Profile repository and identity resolution.

Resolves the caller behind an access token through Supabase Auth, and loads the
matching row from `profiles`. The permission matrix is decoded here, once, at
the boundary; nothing downstream sees the stored (text or JSON) form.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from supabase import AuthError, Client

from domain.permissions import decode_permission_matrix
from domain.profile import Identity, Profile
from repositories.client import execute

logger = logging.getLogger(__name__)

_PROFILES_TABLE: str = "profiles"


def _row_to_profile(row: Mapping[str, Any]) -> Profile:
    return Profile(
        user_id=str(row["id"]),
        role=row.get("role"),
        full_name=row.get("full_name"),
        email=row.get("email"),
        admin_id=row.get("admin_id") or None,
        permissions=decode_permission_matrix(row.get("permissions")),
    )


class ProfileRepository:
    def __init__(self, client: Client) -> None:
        self._client = client

    def get_profile(self, user_id: str) -> Optional[Profile]:
        """Return the profile of a user, or None if the user has none."""

        rows = execute(
            self._client.table(_PROFILES_TABLE)
            .select("id, full_name, email, role, admin_id, permissions")
            .eq("id", user_id)
            .limit(1),
            "fetch profile",
        )
        if not rows:
            return None
        return _row_to_profile(rows[0])


class SupabaseIdentityResolver:
    """Resolves an access token to the authenticated user, if any."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def resolve(self, access_token: Optional[str]) -> Optional[Identity]:
        if not access_token:
            return None

        try:
            response = self._client.auth.get_user(access_token)
        except AuthError as e:
            logger.info("Rejected access token", extra={"reason": str(e)})
            return None

        user = getattr(response, "user", None) if response is not None else None
        if user is None:
            return None

        metadata = getattr(user, "user_metadata", None) or {}
        return Identity(
            user_id=str(user.id),
            email=getattr(user, "email", None),
            first_name=metadata.get("first_name"),
        )


__all__ = ["ProfileRepository", "SupabaseIdentityResolver"]
