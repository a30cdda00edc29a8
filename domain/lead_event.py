"""
Domain: lead events (audit trail).

Rules implemented here:
- A LeadEvent records one fact about a lead's history.
- Once written a LeadEvent is never updated or deleted.
- A lead's events ordered by created_at form its complete audit trail; the
  lead itself does not embed them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from .time import require_utc_timestamp

# Written in place of a null property reference in property_assigned events.
UNASSIGNED: str = "Unassigned"


class LeadEventType(str, Enum):
    CREATED = "created"
    STATUS_CHANGED = "status_changed"
    NOTE_ADDED = "note_added"
    PROPERTY_ASSIGNED = "property_assigned"


@dataclass(frozen=True, slots=True)
class NewLeadEvent:
    """An event that has not been appended yet (no id, no timestamp)."""

    lead_id: str
    event_type: LeadEventType
    actor_id: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None


@dataclass(frozen=True, slots=True)
class LeadEvent:
    """Immutable, appended ledger entry."""

    event_id: str
    lead_id: str
    event_type: LeadEventType
    actor_id: str
    created_at: datetime
    old_value: Optional[str] = None
    new_value: Optional[str] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
