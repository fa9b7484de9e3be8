from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.models.enums.sales_order_status import SaleStatus, PaymentStatus
from app.utils.get_user import get_current_user
from app.utils.response import success_response, APIResponse
from app.utils.sales_order_permissions import SalesOrderPermissions

from app.schemas.sales.sales_order_schemas import (
    SalesOrderUpdate,
    ReopenRequest,
    SalesOrderOut,
    SalesOrderListData,
    SalesOrderPermissionsOut,
)
from app.schemas.purchasing.purchase_order_schemas import (
    PurchaseOrderCreate,
    PurchaseOrderOut,
)

from app.services.sales.sales_order_service import (
    get_sales_order,
    list_sales_orders,
    get_sales_order_permissions,
    map_permissions,
    update_sales_order,
    perform_sales_order_action,
    request_reopen,
    approve_reopen,
    reject_reopen,
)
from app.services.purchasing.purchase_order_service import (
    create_purchase_order_from_sales_order,
)

router = APIRouter(
    prefix="/sales-orders",
    tags=["Sales Orders"],
)


async def current_permissions(
    sales_order_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
) -> SalesOrderPermissions:
    return await get_sales_order_permissions(db, sales_order_id, user)


@router.get(
    "",
    response_model=APIResponse[SalesOrderListData],
)
async def list_sales_orders_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
    sale_status: Optional[SaleStatus] = Query(None),
    payment_status: Optional[PaymentStatus] = Query(None),
    customer_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    data = await list_sales_orders(
        db,
        user,
        sale_status=sale_status,
        payment_status=payment_status,
        customer_id=customer_id,
        page=page,
        page_size=page_size,
    )
    return success_response("Sales orders retrieved successfully", data)


@router.get(
    "/{sales_order_id}",
    response_model=APIResponse[SalesOrderOut],
)
async def get_sales_order_api(
    sales_order_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    order = await get_sales_order(db, sales_order_id, user)
    return success_response("Sales order retrieved successfully", order)


@router.get(
    "/{sales_order_id}/permissions",
    response_model=APIResponse[SalesOrderPermissionsOut],
)
async def get_sales_order_permissions_api(
    permissions: SalesOrderPermissions = Depends(current_permissions),
):
    return success_response(
        "Sales order permissions retrieved successfully",
        map_permissions(permissions),
    )


@router.patch(
    "/{sales_order_id}",
    response_model=APIResponse[SalesOrderOut],
)
async def update_sales_order_api(
    sales_order_id: int,
    payload: SalesOrderUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
    permissions: SalesOrderPermissions = Depends(current_permissions),
):
    order = await update_sales_order(db, sales_order_id, payload, permissions, user)
    return success_response("Sales order updated successfully", order)


@router.post(
    "/{sales_order_id}/actions/{action}",
    response_model=APIResponse[SalesOrderOut],
)
async def perform_sales_order_action_api(
    sales_order_id: int,
    action: str,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
    permissions: SalesOrderPermissions = Depends(current_permissions),
):
    order = await perform_sales_order_action(db, sales_order_id, action, permissions, user)
    return success_response(
        f"Sales order moved to {order.sale_status.value}",
        order,
    )


# =====================================================
# REOPEN
# =====================================================
@router.post(
    "/{sales_order_id}/reopen/request",
    response_model=APIResponse[SalesOrderOut],
)
async def request_reopen_api(
    sales_order_id: int,
    payload: Optional[ReopenRequest] = None,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
    permissions: SalesOrderPermissions = Depends(current_permissions),
):
    order = await request_reopen(
        db, sales_order_id, permissions, user, reason=payload.reason if payload else None
    )
    return success_response("Reopen requested", order)


@router.post(
    "/{sales_order_id}/reopen/approve",
    response_model=APIResponse[SalesOrderOut],
)
async def approve_reopen_api(
    sales_order_id: int,
    payload: Optional[ReopenRequest] = None,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
    permissions: SalesOrderPermissions = Depends(current_permissions),
):
    order = await approve_reopen(
        db, sales_order_id, permissions, user, reason=payload.reason if payload else None
    )
    return success_response("Sales order reopened", order)


@router.post(
    "/{sales_order_id}/reopen/reject",
    response_model=APIResponse[SalesOrderOut],
)
async def reject_reopen_api(
    sales_order_id: int,
    payload: Optional[ReopenRequest] = None,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
    permissions: SalesOrderPermissions = Depends(current_permissions),
):
    order = await reject_reopen(
        db, sales_order_id, permissions, user, reason=payload.reason if payload else None
    )
    return success_response("Reopen request rejected", order)


# =====================================================
# PURCHASE ORDERS
# =====================================================
@router.post(
    "/{sales_order_id}/purchase-orders",
    response_model=APIResponse[PurchaseOrderOut],
)
async def create_purchase_order_api(
    sales_order_id: int,
    payload: Optional[PurchaseOrderCreate] = None,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
    permissions: SalesOrderPermissions = Depends(current_permissions),
):
    po = await create_purchase_order_from_sales_order(
        db,
        sales_order_id,
        payload or PurchaseOrderCreate(),
        permissions,
        user,
    )
    return success_response(f"Purchase order {po.po_no} created", po)
