from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.utils.get_user import get_current_user
from app.utils.response import success_response, APIResponse

from app.schemas.sales.quotation_schemas import (
    QuotationStatusUpdate,
    QuotationOut,
    QuotationListData,
)
from app.schemas.sales.sales_order_schemas import SalesOrderOut

from app.services.sales.quotation_service import (
    get_quotation,
    list_quotations,
    change_quotation_status,
    convert_quotation_to_sales_order,
)

router = APIRouter(
    prefix="/quotations",
    tags=["Quotations"],
)


@router.get(
    "",
    response_model=APIResponse[QuotationListData],
)
async def list_quotations_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    data = await list_quotations(db, user, status=status, page=page, page_size=page_size)
    return success_response("Quotations retrieved successfully", data)


@router.get(
    "/{quotation_id}",
    response_model=APIResponse[QuotationOut],
)
async def get_quotation_api(
    quotation_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    quotation = await get_quotation(db, quotation_id, user)
    return success_response("Quotation retrieved successfully", quotation)


@router.patch(
    "/{quotation_id}/status",
    response_model=APIResponse[QuotationOut],
)
async def change_quotation_status_api(
    quotation_id: int,
    payload: QuotationStatusUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    quotation = await change_quotation_status(db, quotation_id, payload, user)
    return success_response("Quotation status updated successfully", quotation)


@router.post(
    "/{quotation_id}/convert-to-sales-order",
    response_model=APIResponse[SalesOrderOut],
)
async def convert_quotation_to_sales_order_api(
    quotation_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    order = await convert_quotation_to_sales_order(db, quotation_id, user)
    return success_response(
        f"Quotation converted to sales order {order.sale_no}",
        order,
    )
