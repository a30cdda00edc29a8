"""
Lead event repository (persistence).

Append-only ledger of lead events. There is no update or delete
operation in this module: every read is a replayable history.
"""

from __future__ import annotations

from typing import Any, Iterator, Mapping
from uuid import uuid4

from supabase import Client

from domain.lead_event import LeadEvent, LeadEventType, NewLeadEvent
from domain.time import Clock, parse_utc_datetime, to_iso_utc, utc_now
from repositories.client import execute

# Supabase table name for lead events.
# Keep this aligned with your database schema.
_LEAD_EVENTS_TABLE: str = "lead_events"


def _row_to_event(row: Mapping[str, Any]) -> LeadEvent:
    """Convert a Supabase row into a LeadEvent."""

    return LeadEvent(
        event_id=str(row["id"]),
        lead_id=str(row["lead_id"]),
        event_type=LeadEventType(str(row["event_type"])),
        actor_id=str(row["broker_id"]),
        created_at=parse_utc_datetime(row["created_at"]),
        old_value=row.get("old_value"),
        new_value=row.get("new_value"),
    )


class LeadEventHistory:
    """
    Events of one lead, oldest first.

    Lazy and restartable: nothing is fetched until iteration starts, and each
    new iteration reads the ledger again.
    """

    def __init__(self, client: Client, lead_id: str) -> None:
        self._client = client
        self.lead_id = lead_id

    def __iter__(self) -> Iterator[LeadEvent]:
        rows = execute(
            self._client.table(_LEAD_EVENTS_TABLE)
            .select("*")
            .eq("lead_id", self.lead_id)
            .order("created_at"),
            "list lead events",
        )
        return (_row_to_event(row) for row in rows)


class LeadEventLedger:
    def __init__(self, client: Client, *, clock: Clock = utc_now) -> None:
        self._client = client
        self._clock = clock

    def append(self, event: NewLeadEvent) -> LeadEvent:
        """
        Append one event to the ledger.

        Raises:
            StoreFailure: if Supabase rejects the insert.
        """

        event_id = str(uuid4())
        created_at = self._clock()

        payload: dict[str, Any] = {
            "id": event_id,
            "lead_id": event.lead_id,
            "event_type": event.event_type.value,
            "old_value": event.old_value,
            "new_value": event.new_value,
            "broker_id": event.actor_id,
            "created_at": to_iso_utc(created_at, name="created_at"),
        }

        execute(self._client.table(_LEAD_EVENTS_TABLE).insert(payload), "append lead event")

        return LeadEvent(
            event_id=event_id,
            lead_id=event.lead_id,
            event_type=event.event_type,
            actor_id=event.actor_id,
            created_at=created_at,
            old_value=event.old_value,
            new_value=event.new_value,
        )

    def list_for_lead(self, lead_id: str) -> LeadEventHistory:
        """Ordered history of a lead, oldest first."""
        return LeadEventHistory(self._client, lead_id)


__all__ = ["LeadEventHistory", "LeadEventLedger"]
