"""
Lead API Endpoints.

Dashboard endpoints for reading and mutating a tenant's leads. Every endpoint
is gated by the caller's capability matrix (leads.view / create / edit / delete).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_clock, get_coordinator, get_engine, get_lead_store, require_permission
from api.models import (
    BulkCreateRequest,
    BulkDeleteRequest,
    BulkReportResponse,
    BulkUpdateRequest,
    LeadCreateRequest,
    LeadEnvelope,
    LeadEventListResponse,
    LeadEventResponse,
    LeadListResponse,
    LeadResponse,
    LeadUpdateRequest,
)
from domain.time import Clock
from repositories.lead_repository import LeadStore
from services.authorization_service import AuthorizedContext
from services.automation_service import AutomationEngine
from services.bulk_operation_service import BulkOperationCoordinator

router = APIRouter()


@router.get(
    "/leads",
    response_model=LeadListResponse,
    summary="List Leads",
    description="All leads of the caller's company, newest first.",
)
def list_leads(
    context: AuthorizedContext = Depends(require_permission("leads", "view")),
    store: LeadStore = Depends(get_lead_store),
):
    leads = store.list_by_tenant(context.profile.company_id)
    return LeadListResponse(data=[LeadResponse.from_lead(lead) for lead in leads])


@router.post(
    "/leads",
    response_model=LeadEnvelope,
    status_code=201,
    summary="Create Lead",
)
def create_lead(
    request: LeadCreateRequest,
    context: AuthorizedContext = Depends(require_permission("leads", "create")),
    engine: AutomationEngine = Depends(get_engine),
):
    """
    Create a lead in the caller's company.

    The company is always taken from the caller's profile; a created event is
    appended to the new lead's audit trail.
    """
    result = engine.create_lead(request.model_dump(exclude_unset=True), context.actor)
    return LeadEnvelope(data=LeadResponse.from_lead(result.lead))


@router.put(
    "/leads",
    response_model=BulkReportResponse,
    summary="Bulk Update Leads",
)
def bulk_update_leads(
    request: BulkUpdateRequest,
    context: AuthorizedContext = Depends(require_permission("leads", "edit")),
    coordinator: BulkOperationCoordinator = Depends(get_coordinator),
):
    """
    Apply the same change to many leads.

    **Partial success:** each lead is processed independently; the response
    lists the outcome of every id.
    """
    report = coordinator.bulk_update(
        request.ids,
        request.data.model_dump(exclude_unset=True),
        context.actor,
    )
    return BulkReportResponse.from_report(report, "Updated")


@router.delete(
    "/leads",
    response_model=BulkReportResponse,
    summary="Bulk Delete Leads",
)
def bulk_delete_leads(
    request: BulkDeleteRequest,
    context: AuthorizedContext = Depends(require_permission("leads", "delete")),
    coordinator: BulkOperationCoordinator = Depends(get_coordinator),
):
    report = coordinator.bulk_delete(request.ids, context.actor)
    return BulkReportResponse.from_report(report, "Deleted")


@router.post(
    "/leads/bulk-create",
    response_model=BulkReportResponse,
    summary="Bulk Create Leads",
    description="Create up to 50 leads in one call; extra items are ignored.",
)
def bulk_create_leads(
    request: BulkCreateRequest,
    context: AuthorizedContext = Depends(require_permission("leads", "create")),
    coordinator: BulkOperationCoordinator = Depends(get_coordinator),
):
    report = coordinator.bulk_create(
        [lead.model_dump(exclude_unset=True) for lead in request.leads],
        context.actor,
    )
    return BulkReportResponse.from_report(report, "Created")


@router.get(
    "/leads/upcoming",
    response_model=LeadListResponse,
    summary="Upcoming Follow-Ups",
)
def upcoming_follow_ups(
    days: int = Query(7, ge=0, le=365),
    context: AuthorizedContext = Depends(require_permission("leads", "view")),
    store: LeadStore = Depends(get_lead_store),
    clock: Clock = Depends(get_clock),
):
    leads = store.list_upcoming_follow_ups(
        context.profile.company_id,
        today=clock().date(),
        days=days,
    )
    return LeadListResponse(data=[LeadResponse.from_lead(lead) for lead in leads])


@router.put(
    "/leads/{lead_id}",
    response_model=LeadEnvelope,
    summary="Update Lead",
)
def update_lead(
    lead_id: str,
    request: LeadUpdateRequest,
    context: AuthorizedContext = Depends(require_permission("leads", "edit")),
    engine: AutomationEngine = Depends(get_engine),
):
    """
    Update one lead and run the automation rules.

    **Automation:**
    - Moving to Contacted without a follow-up date schedules one in 3 days.
    - Status, notes and property changes are recorded in the audit trail.
    - A status change emails the lead when an address is on file.

    Audit and email failures never fail the request.
    """
    result = engine.apply_update(lead_id, request.model_dump(exclude_unset=True), context.actor)
    return LeadEnvelope(data=LeadResponse.from_lead(result.lead))


@router.delete(
    "/leads/{lead_id}",
    summary="Delete Lead",
)
def delete_lead(
    lead_id: str,
    context: AuthorizedContext = Depends(require_permission("leads", "delete")),
    engine: AutomationEngine = Depends(get_engine),
):
    engine.delete_lead(lead_id, context.actor)
    return {"success": True}


@router.get(
    "/leads/{lead_id}/events",
    response_model=LeadEventListResponse,
    summary="Lead Audit Trail",
    description="Events of one lead, oldest first.",
)
def list_lead_events(
    lead_id: str,
    context: AuthorizedContext = Depends(require_permission("leads", "view")),
    engine: AutomationEngine = Depends(get_engine),
):
    history = engine.list_events(lead_id, context.actor)
    return LeadEventListResponse(events=[LeadEventResponse.from_event(event) for event in history])
