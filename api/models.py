"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from domain.lead import Lead, LeadSource, LeadStatus
from domain.lead_event import LeadEvent
from services.bulk_operation_service import BulkReport


# ============================================================================
# Lead Models
# ============================================================================

class LeadCreateRequest(BaseModel):
    """Request to create a lead manually from the dashboard."""
    name: str = Field(..., min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    message: Optional[str] = None
    status: Optional[LeadStatus] = None
    source: Optional[LeadSource] = None
    property_id: Optional[str] = None
    notes: Optional[str] = None
    follow_up_date: Optional[str] = Field(
        None,
        description="YYYY-MM-DD; an empty string means no follow-up date",
    )

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "name": "Sara Haddad",
                "email": "sara@example.com",
                "phone": "+971500000000",
                "status": "New",
                "source": "WhatsApp",
                "property_id": "",
            }
        },
    )


class LeadUpdateRequest(BaseModel):
    """
    Partial update of a lead.

    Fields left out of the request body are left unchanged; follow_up_date and
    property_id sent as "" are cleared.
    """
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    message: Optional[str] = None
    status: Optional[LeadStatus] = None
    source: Optional[LeadSource] = None
    property_id: Optional[str] = None
    notes: Optional[str] = None
    follow_up_date: Optional[str] = None

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={"example": {"status": "Contacted", "notes": "Called, wants a viewing"}},
    )


class LeadResponse(BaseModel):
    """Single lead in API response."""
    id: str
    company_id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    message: Optional[str] = None
    status: LeadStatus
    source: LeadSource
    property_id: Optional[str] = None
    property_title: Optional[str] = None
    notes: Optional[str] = None
    follow_up_date: Optional[date] = None
    created_at: datetime

    @classmethod
    def from_lead(cls, lead: Lead) -> "LeadResponse":
        return cls(
            id=lead.lead_id,
            company_id=lead.company_id,
            name=lead.name,
            email=lead.email,
            phone=lead.phone,
            message=lead.message,
            status=lead.status,
            source=lead.source,
            property_id=lead.property_id,
            property_title=lead.property_title,
            notes=lead.notes,
            follow_up_date=lead.follow_up_date,
            created_at=lead.created_at,
        )


class LeadEnvelope(BaseModel):
    data: LeadResponse


class LeadListResponse(BaseModel):
    data: List[LeadResponse]


class LeadEventResponse(BaseModel):
    """Single audit trail entry."""
    id: str
    lead_id: str
    event_type: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    broker_id: str
    created_at: datetime

    @classmethod
    def from_event(cls, event: LeadEvent) -> "LeadEventResponse":
        return cls(
            id=event.event_id,
            lead_id=event.lead_id,
            event_type=event.event_type.value,
            old_value=event.old_value,
            new_value=event.new_value,
            broker_id=event.actor_id,
            created_at=event.created_at,
        )


class LeadEventListResponse(BaseModel):
    events: List[LeadEventResponse]


# ============================================================================
# Bulk Models
# ============================================================================

class BulkUpdateRequest(BaseModel):
    ids: List[str] = Field(..., min_length=1, description="Lead IDs to update")
    data: LeadUpdateRequest

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"ids": ["lead-1", "lead-2"], "data": {"status": "Viewing"}}
        }
    )


class BulkDeleteRequest(BaseModel):
    ids: List[str] = Field(..., min_length=1, description="Lead IDs to delete")


class BulkCreateRequest(BaseModel):
    leads: List[LeadCreateRequest] = Field(..., min_length=1)


class BulkItemResponse(BaseModel):
    index: int
    label: str
    outcome: str  # "success" or "failure"
    reason: Optional[str] = None


class BulkReportResponse(BaseModel):
    """Per-item outcome report; partial success is normal."""
    results: List[BulkItemResponse]
    success_count: int
    total: int
    message: str

    @classmethod
    def from_report(cls, report: BulkReport, verb: str) -> "BulkReportResponse":
        total = len(report.outcomes)
        return cls(
            results=[
                BulkItemResponse(
                    index=item.index,
                    label=item.label,
                    outcome=item.outcome,
                    reason=item.reason,
                )
                for item in report.outcomes
            ],
            success_count=report.success_count,
            total=total,
            message=f"{verb} {report.success_count}/{total} leads",
        )


# ============================================================================
# Portal Models
# ============================================================================

class InquiryRequest(BaseModel):
    """Public inquiry about a property."""
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    phone: Optional[str] = None
    message: Optional[str] = None
    property_id: str = Field(..., alias="propertyId")

    model_config = ConfigDict(populate_by_name=True)


class InquiryResponse(BaseModel):
    success: bool
    lead: LeadResponse


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    redirect_to: Optional[str] = None
    status_code: int
