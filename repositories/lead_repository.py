"""
Lead repository (persistence).

This module provides *only* persistence operations for the Lead domain entity,
always scoped to a tenant (company). No automation rules belong here: the
status-change follow-up rule, the ledger and notifications live in
services/automation_service.py.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Iterable, List, Mapping, Optional
from uuid import uuid4

from supabase import Client

from domain.errors import NotFound
from domain.lead import Lead, LeadSource, LeadStatus, normalize_lead_patch
from domain.time import Clock, parse_date, parse_utc_datetime, to_iso_utc, utc_now
from repositories.client import execute

logger = logging.getLogger(__name__)

# Supabase table name for Lead records.
# Keep this aligned with your database schema.
_LEADS_TABLE: str = "leads"

# Leads are read together with the title of their property.
_LEAD_COLUMNS: str = "*, properties ( title )"


def _serialize_value(value: Any) -> Any:
    if isinstance(value, (LeadStatus, LeadSource)):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    return value


def _fields_to_row(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Convert normalized lead fields to a Supabase row payload."""
    return {key: _serialize_value(value) for key, value in fields.items()}


def _row_to_lead(row: Mapping[str, Any]) -> Lead:
    """Convert a Supabase row into a domain Lead."""

    # Helper to convert empty strings to None
    def get_optional(key: str) -> Optional[str]:
        value = row.get(key)
        return str(value) if value not in (None, "") else None

    joined = row.get("properties") or {}
    source = row.get("source")
    try:
        lead_source = LeadSource(source) if source else LeadSource.OTHER
    except ValueError:
        # Legacy rows (e.g. "portal") predate the closed source set.
        lead_source = LeadSource.OTHER

    status = row.get("status")
    try:
        lead_status = LeadStatus(status) if status else LeadStatus.NEW
    except ValueError:
        # Rows written before the status set was closed.
        logger.warning(
            f"Unknown status {status!r} on lead {row.get('id')}, reading it as New",
            extra={"lead_id": row.get("id"), "status": status},
        )
        lead_status = LeadStatus.NEW

    return Lead(
        lead_id=str(row["id"]),
        company_id=str(row["company_id"]),
        name=str(row.get("name") or ""),
        created_at=parse_utc_datetime(row["created_at"]),
        status=lead_status,
        source=lead_source,
        email=get_optional("email"),
        phone=get_optional("phone"),
        message=get_optional("message"),
        property_id=get_optional("property_id"),
        property_title=joined.get("title") if isinstance(joined, Mapping) else None,
        notes=row.get("notes"),
        follow_up_date=parse_date(row.get("follow_up_date")),
    )


class LeadStore:
    """
    Create/read/update/delete of leads for one tenant at a time.

    Every method takes the tenant id explicitly; a lead outside that tenant is
    indistinguishable from a lead that does not exist (NotFound).
    """

    def __init__(self, client: Client, *, clock: Clock = utc_now) -> None:
        self._client = client
        self._clock = clock

    def _table(self):
        return self._client.table(_LEADS_TABLE)

    def get(self, lead_id: str, tenant_id: str) -> Lead:
        """
        Fetch a lead by id within a tenant.

        Raises:
            NotFound: if no such lead exists in the tenant.
            StoreFailure: on persistence errors.
        """

        rows = execute(
            self._table()
            .select(_LEAD_COLUMNS)
            .eq("id", lead_id)
            .eq("company_id", tenant_id)
            .limit(1),
            "fetch lead",
        )
        if not rows:
            raise NotFound(f"Lead not found: {lead_id}")
        return _row_to_lead(rows[0])

    def list_by_tenant(self, tenant_id: str) -> List[Lead]:
        """All leads of a tenant, newest first."""

        rows = execute(
            self._table()
            .select(_LEAD_COLUMNS)
            .eq("company_id", tenant_id)
            .order("created_at", desc=True),
            "list leads",
        )
        return [_row_to_lead(row) for row in rows]

    def list_upcoming_follow_ups(
        self,
        tenant_id: str,
        *,
        today: date,
        days: int = 7,
    ) -> List[Lead]:
        """Leads with a follow-up date in [today, today + days], soonest first."""

        rows = execute(
            self._table()
            .select(_LEAD_COLUMNS)
            .eq("company_id", tenant_id)
            .gte("follow_up_date", today.isoformat())
            .lte("follow_up_date", (today + timedelta(days=days)).isoformat())
            .order("follow_up_date"),
            "list upcoming follow-ups",
        )
        return [_row_to_lead(row) for row in rows]

    def create(self, fields: Mapping[str, Any], tenant_id: str) -> Lead:
        """
        Insert a new lead.

        `fields` must already be validated (see domain.lead.validate_new_lead);
        the tenant id comes from the caller's profile, never from client input.
        """

        payload = _fields_to_row(fields)
        payload.setdefault("status", LeadStatus.NEW.value)
        payload["id"] = str(uuid4())
        payload["company_id"] = tenant_id
        payload["created_at"] = to_iso_utc(self._clock(), name="created_at")

        rows = execute(self._table().insert(payload), "create lead")
        if not rows:
            # Some backends return no representation; fall back to the payload.
            rows = [payload]
        return _row_to_lead(rows[0])

    def update(self, lead_id: str, patch: Mapping[str, Any], tenant_id: str) -> Lead:
        """
        Apply a patch to one lead.

        Absent keys are left unchanged; clearable keys sent as "" or None are
        written as a genuine null.

        Raises:
            NotFound: if the lead does not exist in the tenant.
            ValidationError: if the patch is malformed.
        """

        fields = normalize_lead_patch(patch)
        if not fields:
            return self.get(lead_id, tenant_id)

        rows = execute(
            self._table()
            .update(_fields_to_row(fields))
            .eq("id", lead_id)
            .eq("company_id", tenant_id),
            "update lead",
        )
        if not rows:
            raise NotFound(f"Lead not found: {lead_id}")
        return _row_to_lead(rows[0])

    def delete(self, lead_id: str, tenant_id: str) -> None:
        """Permanently delete one lead."""

        rows = execute(
            self._table().delete().eq("id", lead_id).eq("company_id", tenant_id),
            "delete lead",
        )
        if not rows:
            raise NotFound(f"Lead not found: {lead_id}")

    def bulk_update(
        self,
        lead_ids: Iterable[str],
        patch: Mapping[str, Any],
        tenant_id: str,
    ) -> List[Lead]:
        """
        Apply the same patch to many leads.

        Not atomic across the set. Returns only the leads that were actually
        updated; ids that do not exist in the tenant are simply absent.
        """

        ids = list(lead_ids)
        fields = normalize_lead_patch(patch)
        if not ids or not fields:
            return []

        rows = execute(
            self._table()
            .update(_fields_to_row(fields))
            .in_("id", ids)
            .eq("company_id", tenant_id),
            "bulk update leads",
        )
        return [_row_to_lead(row) for row in rows]

    def bulk_delete(self, lead_ids: Iterable[str], tenant_id: str) -> List[str]:
        """Delete many leads; returns the ids that were actually deleted."""

        ids = list(lead_ids)
        if not ids:
            return []

        rows = execute(
            self._table().delete().in_("id", ids).eq("company_id", tenant_id),
            "bulk delete leads",
        )
        return [str(row["id"]) for row in rows]


__all__ = ["LeadStore"]
