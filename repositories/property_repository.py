"""
Property lookups needed by the lead lifecycle.

Only two read-only questions are asked of the properties table: the title of a
property (for notifications) and its owning company (for public inquiries).
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from supabase import Client

from repositories.client import execute

_PROPERTIES_TABLE: str = "properties"


class PropertyDirectory:
    def __init__(self, client: Client) -> None:
        self._client = client

    def _fetch(self, property_id: str) -> Optional[Mapping[str, Any]]:
        rows = execute(
            self._client.table(_PROPERTIES_TABLE)
            .select("id, title, company_id")
            .eq("id", property_id)
            .limit(1),
            "fetch property",
        )
        return rows[0] if rows else None

    def get_title(self, property_id: Optional[str]) -> Optional[str]:
        if not property_id:
            return None
        row = self._fetch(property_id)
        return row.get("title") if row else None

    def get_company_id(self, property_id: Optional[str]) -> Optional[str]:
        if not property_id:
            return None
        row = self._fetch(property_id)
        if not row or not row.get("company_id"):
            return None
        return str(row["company_id"])


__all__ = ["PropertyDirectory"]
