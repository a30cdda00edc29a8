"""
Domain: notification requests.

The core only decides that a notification should be sent and with what data.
Delivery belongs to an external dispatcher.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .lead import Lead, LeadStatus

LEAD_STATUS_CHANGE_TEMPLATE: str = "lead_status_change"

_DEFAULT_LEAD_NAME = "Client"
_DEFAULT_PROPERTY_TITLE = "our properties"
_DEFAULT_BROKER_NAME = "Your Broker"


@dataclass(frozen=True, slots=True)
class NotificationRequest:
    recipient: str
    template_key: str
    template_data: Mapping[str, Any] = field(default_factory=dict)
    # Log context only; not part of the delivered message.
    lead_id: Optional[str] = None
    tenant_id: Optional[str] = None


def status_change_notification(
    lead: Lead,
    old_status: LeadStatus,
    new_status: LeadStatus,
    broker_name: Optional[str],
    property_title: Optional[str] = None,
) -> Optional[NotificationRequest]:
    """Build the status-change notification, or None if the lead has no email."""

    if not lead.email:
        return None

    return NotificationRequest(
        recipient=lead.email,
        template_key=LEAD_STATUS_CHANGE_TEMPLATE,
        template_data={
            "lead_name": lead.name or _DEFAULT_LEAD_NAME,
            "old_status": old_status.value,
            "new_status": new_status.value,
            "property_title": property_title or lead.property_title or _DEFAULT_PROPERTY_TITLE,
            "broker_name": broker_name or _DEFAULT_BROKER_NAME,
        },
        lead_id=lead.lead_id,
        tenant_id=lead.company_id,
    )
