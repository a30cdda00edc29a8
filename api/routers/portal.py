"""
Portal API Endpoints.

Public endpoints used by the property portal. Authentication is optional.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from api.dependencies import get_engine, optional_user
from api.models import InquiryRequest, InquiryResponse, LeadResponse
from services.authorization_service import AuthenticatedUser
from services.automation_service import AutomationEngine

router = APIRouter()


@router.post(
    "/portal/inquiries",
    response_model=InquiryResponse,
    summary="Submit Property Inquiry",
)
def submit_inquiry(
    request: InquiryRequest,
    user: Optional[AuthenticatedUser] = Depends(optional_user),
    engine: AutomationEngine = Depends(get_engine),
):
    """
    Create a lead for the company that owns the property.

    **Example request:**
    ```json
    {
      "name": "Omar",
      "email": "omar@example.com",
      "message": "Is this still available?",
      "propertyId": "6f1c..."
    }
    ```
    """
    result = engine.create_inquiry(
        name=request.name,
        email=request.email,
        phone=request.phone,
        message=request.message,
        property_id=request.property_id,
        actor_id=user.identity.user_id if user else None,
    )
    return InquiryResponse(success=True, lead=LeadResponse.from_lead(result.lead))
