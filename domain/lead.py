"""
Domain: Lead entity.

Rules implemented here:
- A Lead represents a single inquiry from a prospective buyer or tenant and is
  identified by an opaque id assigned by the store.
- company_id (tenant scope) is set once at creation and never changed by an update.
- status is one of a closed set; a lead without an explicit status is New.
- A patch distinguishes "leave unchanged" (key absent) from "explicitly clear"
  (key present with an empty value) for the optional reference fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping, Optional

from .errors import ValidationError
from .time import parse_date, require_utc_timestamp


class LeadStatus(str, Enum):
    NEW = "New"
    CONTACTED = "Contacted"
    VIEWING = "Viewing"
    NEGOTIATION = "Negotiation"
    WON = "Won"
    LOST = "Lost"

    @classmethod
    def _missing_(cls, value: object) -> Optional["LeadStatus"]:
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.strip().lower():
                    return member
        return None


class LeadSource(str, Enum):
    WHATSAPP = "WhatsApp"
    WEBSITE = "Website"
    REFERRAL = "Referral"
    OTHER = "Other"

    @classmethod
    def _missing_(cls, value: object) -> Optional["LeadSource"]:
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.strip().lower():
                    return member
        return None


# Fields a patch may touch.
MUTABLE_FIELDS: frozenset[str] = frozenset(
    {
        "name",
        "email",
        "phone",
        "message",
        "status",
        "source",
        "property_id",
        "notes",
        "follow_up_date",
    }
)

# Fields that are never written by an update; silently dropped from patches.
IMMUTABLE_FIELDS: frozenset[str] = frozenset({"id", "company_id", "created_at"})

# Optional reference fields where an empty string means "clear".
_CLEARABLE_FIELDS: frozenset[str] = frozenset({"follow_up_date", "property_id"})


@dataclass(frozen=True, slots=True)
class Lead:
    """
    Snapshot of a lead as stored.

    Leads are mutated only by writing a new row through the store; instances of
    this class are never changed in place, which keeps "old" and "new" snapshots
    safe to compare.
    """

    lead_id: str
    company_id: str
    name: str
    created_at: datetime
    status: LeadStatus = LeadStatus.NEW
    source: LeadSource = LeadSource.OTHER
    email: Optional[str] = None
    phone: Optional[str] = None
    message: Optional[str] = None
    property_id: Optional[str] = None
    property_title: Optional[str] = None
    notes: Optional[str] = None
    follow_up_date: Optional[date] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
        if not self.company_id:
            raise ValueError("company_id is required")

    @property
    def label(self) -> str:
        """Human-readable identifier used in bulk outcome reports."""
        return self.name or self.lead_id


def _coerce_status(value: Any) -> LeadStatus:
    try:
        return LeadStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid lead status: {value!r}") from None


def _coerce_source(value: Any) -> LeadSource:
    try:
        return LeadSource(value)
    except ValueError:
        raise ValidationError(f"Invalid lead source: {value!r}") from None


def normalize_lead_patch(patch: Mapping[str, Any]) -> dict[str, Any]:
    """
    Validate and normalize an update patch.

    - Unknown keys raise ValidationError.
    - id / company_id / created_at are dropped (never updatable).
    - "" for follow_up_date / property_id becomes None (explicit clear).
    - status / source are coerced to their enums.
    - follow_up_date is coerced to a date.

    Keys absent from the input stay absent from the output.
    """

    normalized: dict[str, Any] = {}
    for key, value in patch.items():
        if key in IMMUTABLE_FIELDS:
            continue
        if key not in MUTABLE_FIELDS:
            raise ValidationError(f"Unknown lead field: {key!r}")

        if key in _CLEARABLE_FIELDS and value == "":
            value = None

        if key == "status":
            if value is None:
                raise ValidationError("status cannot be cleared")
            value = _coerce_status(value)
        elif key == "source":
            if value is None:
                raise ValidationError("source cannot be cleared")
            value = _coerce_source(value)
        elif key == "follow_up_date" and value is not None:
            try:
                value = parse_date(value)
            except (TypeError, ValueError):
                raise ValidationError(f"Invalid follow_up_date: {value!r}") from None
        elif key == "name" and not value:
            raise ValidationError("name cannot be empty")

        normalized[key] = value
    return normalized


def validate_new_lead(data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Validate the client-supplied fields of a new lead.

    company_id is never taken from here; the caller resolves it server-side.
    """

    if not data.get("name"):
        raise ValidationError("Name is required")

    fields = normalize_lead_patch(data)
    fields.setdefault("status", LeadStatus.NEW)
    fields.setdefault("source", LeadSource.OTHER)
    return fields


__all__ = [
    "IMMUTABLE_FIELDS",
    "MUTABLE_FIELDS",
    "Lead",
    "LeadSource",
    "LeadStatus",
    "normalize_lead_patch",
    "validate_new_lead",
]
