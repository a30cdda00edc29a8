"""
Lead automation engine.

Owns the lead lifecycle policy:
- Before an update: a move to Contacted without a follow-up date gets one,
  three calendar days from today.
- After an update, diffing the stored snapshot before and after:
  - status changed      -> status_changed event (+ email to the lead, if any)
  - notes changed       -> note_added event (only for a non-empty new value)
  - property reassigned -> property_assigned event ("Unassigned" for null)
- On creation: exactly one created event.

The primary store mutation is the only fatal step. Ledger appends and
notification hand-offs run afterwards as best-effort side effects: their
failures are logged and counted on the result, and never turn a committed
mutation into an error.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Iterator, List, Mapping, Optional

from domain.errors import NotificationFailure, ValidationError
from domain.lead import Lead, LeadSource, LeadStatus, normalize_lead_patch, validate_new_lead
from domain.lead_event import UNASSIGNED, LeadEvent, LeadEventType, NewLeadEvent
from domain.notification import NotificationRequest, status_change_notification
from domain.profile import Actor
from domain.time import Clock, utc_now
from repositories.lead_event_repository import LeadEventHistory, LeadEventLedger
from repositories.lead_repository import LeadStore
from repositories.property_repository import PropertyDirectory
from services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

FOLLOW_UP_DELAY = timedelta(days=3)

# Actor id recorded for leads created from the public portal by anonymous visitors.
PORTAL_ACTOR_ID: str = "portal"


@dataclass(slots=True)
class AutomationResult:
    """
    Outcome of one lifecycle operation.

    side_effect_failures is the side channel for best-effort failures; callers
    must not turn it into an error response.
    """

    lead: Lead
    events: List[LeadEvent] = field(default_factory=list)
    notifications: List[NotificationRequest] = field(default_factory=list)
    side_effect_failures: List[str] = field(default_factory=list)


class AutomationEngine:
    def __init__(
        self,
        store: LeadStore,
        ledger: LeadEventLedger,
        properties: PropertyDirectory,
        notifier: NotificationDispatcher,
        *,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._properties = properties
        self._notifier = notifier
        self._clock = clock

    # ------------------------------------------------------------------
    # Best-effort side effects
    # ------------------------------------------------------------------

    @contextmanager
    def _best_effort(self, result: AutomationResult, failure_type: str) -> Iterator[None]:
        try:
            yield
        except Exception as e:
            logger.warning(
                f"Best-effort {failure_type} failed for lead {result.lead.lead_id}: {e}",
                extra={
                    "lead_id": result.lead.lead_id,
                    "tenant_id": result.lead.company_id,
                    "failure_type": failure_type,
                },
            )
            result.side_effect_failures.append(f"{failure_type}: {e}")

    def _append(self, result: AutomationResult, event: NewLeadEvent) -> None:
        with self._best_effort(result, "ledger_append"):
            result.events.append(self._ledger.append(event))

    def _notify(self, result: AutomationResult, request: NotificationRequest) -> None:
        with self._best_effort(result, "notification_dispatch"):
            try:
                self._notifier.dispatch(request)
            except Exception as e:
                raise NotificationFailure(str(e), recipient=request.recipient) from e
            result.notifications.append(request)

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def _inject_follow_up(self, fields: dict[str, Any]) -> None:
        """Contacted without a follow-up date -> today + 3 days. Never overrides a date."""

        if fields.get("status") is LeadStatus.CONTACTED and not fields.get("follow_up_date"):
            fields["follow_up_date"] = (self._clock() + FOLLOW_UP_DELAY).date()

    def record_status_change(
        self,
        result: AutomationResult,
        old_lead: Lead,
        actor: Actor,
        *,
        notify: bool = True,
    ) -> None:
        """Append status_changed (and optionally notify) if the status moved."""

        new_lead = result.lead
        if new_lead.status == old_lead.status:
            return

        self._append(
            result,
            NewLeadEvent(
                lead_id=new_lead.lead_id,
                event_type=LeadEventType.STATUS_CHANGED,
                actor_id=actor.user_id,
                old_value=old_lead.status.value,
                new_value=new_lead.status.value,
            ),
        )

        if not notify or not new_lead.email:
            return

        request: Optional[NotificationRequest] = None
        with self._best_effort(result, "notification_dispatch"):
            request = status_change_notification(
                new_lead,
                old_lead.status,
                new_lead.status,
                actor.display_name,
                property_title=self._properties.get_title(new_lead.property_id),
            )
        if request is not None:
            self._notify(result, request)

    def _record_note(self, result: AutomationResult, old_lead: Lead, actor: Actor) -> None:
        new_lead = result.lead
        if not new_lead.notes or new_lead.notes == old_lead.notes:
            return

        self._append(
            result,
            NewLeadEvent(
                lead_id=new_lead.lead_id,
                event_type=LeadEventType.NOTE_ADDED,
                actor_id=actor.user_id,
                old_value=old_lead.notes,
                new_value=new_lead.notes,
            ),
        )

    def _record_property(
        self,
        result: AutomationResult,
        old_lead: Lead,
        actor: Actor,
        fields: Mapping[str, Any],
    ) -> None:
        new_lead = result.lead
        if "property_id" not in fields or new_lead.property_id == old_lead.property_id:
            return

        self._append(
            result,
            NewLeadEvent(
                lead_id=new_lead.lead_id,
                event_type=LeadEventType.PROPERTY_ASSIGNED,
                actor_id=actor.user_id,
                old_value=old_lead.property_id or UNASSIGNED,
                new_value=new_lead.property_id or UNASSIGNED,
            ),
        )

    def _record_created(self, result: AutomationResult, actor_id: str) -> None:
        self._append(
            result,
            NewLeadEvent(
                lead_id=result.lead.lead_id,
                event_type=LeadEventType.CREATED,
                actor_id=actor_id,
                new_value=result.lead.status.value,
            ),
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def apply_update(self, lead_id: str, patch: Mapping[str, Any], actor: Actor) -> AutomationResult:
        """
        Update one lead and run every automation rule.

        Raises:
            ValidationError: malformed patch (before any store call).
            NotFound: lead absent or outside the actor's tenant.
            StoreFailure: the primary read or update failed.
        """

        fields = normalize_lead_patch(patch)
        self._inject_follow_up(fields)

        old_lead = self._store.get(lead_id, actor.company_id)
        new_lead = self._store.update(lead_id, fields, actor.company_id)

        result = AutomationResult(lead=new_lead)
        self.record_status_change(result, old_lead, actor)
        self._record_note(result, old_lead, actor)
        self._record_property(result, old_lead, actor, fields)
        return result

    def create_lead(self, data: Mapping[str, Any], actor: Actor) -> AutomationResult:
        """Create a lead in the actor's tenant and record its created event."""

        fields = validate_new_lead(data)
        lead = self._store.create(fields, actor.company_id)

        result = AutomationResult(lead=lead)
        self._record_created(result, actor.user_id)
        return result

    def create_inquiry(
        self,
        *,
        name: str,
        email: str,
        property_id: str,
        phone: Optional[str] = None,
        message: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> AutomationResult:
        """
        Create a lead from a public portal inquiry.

        The tenant is the company owning the property; an inquiry whose property
        cannot be resolved is rejected.
        """

        if not name or not email:
            raise ValidationError("Name and email are required")

        company_id = self._properties.get_company_id(property_id)
        if not company_id:
            raise ValidationError("Could not determine property owner")

        fields = validate_new_lead(
            {
                "name": name,
                "email": email,
                "phone": phone,
                "message": message,
                "property_id": property_id,
                "status": LeadStatus.NEW,
                "source": LeadSource.WEBSITE,
            }
        )
        lead = self._store.create(fields, company_id)

        result = AutomationResult(lead=lead)
        self._record_created(result, actor_id or PORTAL_ACTOR_ID)
        return result

    def delete_lead(self, lead_id: str, actor: Actor) -> None:
        """Permanently delete a lead. Its ledger rows are left as they are."""

        self._store.delete(lead_id, actor.company_id)
        logger.info(
            "Lead deleted",
            extra={"lead_id": lead_id, "tenant_id": actor.company_id, "user_id": actor.user_id},
        )

    def list_events(self, lead_id: str, actor: Actor) -> LeadEventHistory:
        """Audit trail of a lead in the actor's tenant, oldest first."""

        self._store.get(lead_id, actor.company_id)
        return self._ledger.list_for_lead(lead_id)


__all__ = [
    "FOLLOW_UP_DELAY",
    "PORTAL_ACTOR_ID",
    "AutomationEngine",
    "AutomationResult",
]
