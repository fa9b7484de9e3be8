from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.models.enums.lead_status import OpportunityStatus
from app.utils.get_user import get_current_user
from app.utils.response import success_response, APIResponse

from app.schemas.crm.lead_schemas import (
    OpportunityStatusUpdate,
    ConvertLeadRequest,
    LeadOut,
    LeadListData,
)
from app.schemas.sales.quotation_schemas import QuotationOut

from app.services.crm.lead_service import (
    get_lead,
    list_opportunities,
    update_opportunity_status,
    convert_lead_to_quotation,
)

router = APIRouter(
    prefix="/leads",
    tags=["Leads & Opportunities"],
)


@router.get(
    "",
    response_model=APIResponse[LeadListData],
)
async def list_opportunities_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
    status: Optional[OpportunityStatus] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    data = await list_opportunities(
        db,
        user,
        status=status.value if status else None,
        page=page,
        page_size=page_size,
    )
    return success_response("Opportunities retrieved successfully", data)


@router.get(
    "/{lead_id}",
    response_model=APIResponse[LeadOut],
)
async def get_lead_api(
    lead_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    lead = await get_lead(db, lead_id, user)
    return success_response("Lead retrieved successfully", lead)


@router.patch(
    "/{lead_id}/status",
    response_model=APIResponse[LeadOut],
)
async def update_opportunity_status_api(
    lead_id: int,
    payload: OpportunityStatusUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    lead = await update_opportunity_status(db, lead_id, payload.status, user)
    return success_response("Opportunity status updated successfully", lead)


@router.post(
    "/{lead_id}/convert-to-quotation",
    response_model=APIResponse[QuotationOut],
)
async def convert_lead_to_quotation_api(
    lead_id: int,
    payload: Optional[ConvertLeadRequest] = None,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    quotation = await convert_lead_to_quotation(
        db,
        lead_id,
        user,
        customer_id=payload.customer_id if payload else None,
    )
    return success_response(
        f"Opportunity converted to quotation {quotation.quotation_no}",
        quotation,
    )
