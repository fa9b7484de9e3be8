from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.utils.get_user import get_current_user
from app.utils.response import success_response, APIResponse

from app.schemas.purchasing.purchase_order_schemas import PurchaseOrderOut
from app.services.purchasing.purchase_order_service import (
    get_purchase_order,
    approve_purchase_order,
)

router = APIRouter(
    prefix="/purchase-orders",
    tags=["Purchase Orders"],
)


@router.get(
    "/{po_id}",
    response_model=APIResponse[PurchaseOrderOut],
)
async def get_purchase_order_api(
    po_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    po = await get_purchase_order(db, po_id, user)
    return success_response("Purchase order retrieved successfully", po)


@router.post(
    "/{po_id}/approve",
    response_model=APIResponse[PurchaseOrderOut],
)
async def approve_purchase_order_api(
    po_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    po = await approve_purchase_order(db, po_id, user)
    return success_response("Purchase order approved successfully", po)
