from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from app.models.purchasing.purchase_order_models import PurchaseOrder, PurchaseOrderItem
from app.models.sales.sales_order_models import SalesOrder
from app.models.enums.purchase_order_status import PurchaseOrderStatus
from app.models.enums.sales_order_status import SaleStatus, SalesOrderItemStatus

from app.schemas.purchasing.purchase_order_schemas import (
    PurchaseOrderCreate,
    PurchaseOrderOut,
    PurchaseOrderItemOut,
)

from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.constants.activity_codes import ActivityCode
from app.utils.activity_helpers import emit_activity, actor_context
from app.utils.ownership import check_sales_order_ownership, check_purchase_order_ownership
from app.utils.role_helpers import is_superuser, is_manager_purchasing
from app.utils.sales_order_flow import is_valid_transition
from app.utils.sales_order_permissions import SalesOrderPermissions, ensure_permissions_current
from app.services.sales.sales_order_service import load_sales_order, set_sale_status
from app.services.support.document_number_service import (
    next_document_number,
    PURCHASE_ORDER_PREFIX,
)
from app.utils.logger import get_logger

logger = get_logger(__name__)


# =====================================================
# LOADING / MAPPING
# =====================================================
async def load_purchase_order(
    db: AsyncSession,
    po_id: int,
) -> PurchaseOrder:
    result = await db.execute(
        select(PurchaseOrder)
        .where(
            PurchaseOrder.id == po_id,
            PurchaseOrder.is_deleted.is_(False),
        )
        .execution_options(populate_existing=True)
    )
    po = result.scalar_one_or_none()
    if not po:
        raise AppException(404, "Purchase order not found", ErrorCode.PURCHASE_ORDER_NOT_FOUND)
    return po


def map_purchase_order(po: PurchaseOrder) -> PurchaseOrderOut:
    return PurchaseOrderOut(
        id=po.id,
        po_no=po.po_no,
        sale_id=po.sale_id,
        supplier_id=po.supplier_id,
        user_id=po.user_id,
        status=po.status,
        total=po.total,
        note=po.note,
        created_at=po.created_at,
        updated_at=po.updated_at,
        items=[
            PurchaseOrderItemOut(
                id=i.id,
                product_id=i.product_id,
                product_name=i.product_name,
                quantity=i.quantity,
                unit_price=i.unit_price,
                line_total=i.line_total,
            )
            for i in po.items
        ],
    )


def _items_from_payload(payload: PurchaseOrderCreate) -> list[PurchaseOrderItem]:
    return [
        PurchaseOrderItem(
            product_id=i.product_id,
            product_name=i.product_name,
            quantity=i.quantity,
            unit_price=i.unit_price,
            line_total=i.unit_price * i.quantity,
        )
        for i in payload.items or []
    ]


def _items_from_sales_order(order: SalesOrder) -> list[PurchaseOrderItem]:
    return [
        PurchaseOrderItem(
            product_id=i.product_id,
            product_name=i.product_name,
            quantity=i.quantity,
            unit_price=i.unit_price,
            line_total=i.unit_price * i.quantity,
        )
        for i in order.items
        if not i.is_deleted and i.status == SalesOrderItemStatus.ACTIVE
    ]


# =====================================================
# READ
# =====================================================
async def get_purchase_order(
    db: AsyncSession,
    po_id: int,
    user,
) -> PurchaseOrderOut:
    po = await load_purchase_order(db, po_id)
    check_purchase_order_ownership(po, user)
    return map_purchase_order(po)


# =====================================================
# CREATE FROM SALES ORDER
# =====================================================
async def create_purchase_order_from_sales_order(
    db: AsyncSession,
    sale_id: int,
    payload: PurchaseOrderCreate,
    permissions: SalesOrderPermissions,
    user,
) -> PurchaseOrderOut:
    """
    Raises a draft purchase order for a sales order in PR and moves the
    sales order to PO. The status precondition is checked before the
    caller's permissions, so a wrong-status order never gets partially
    processed.
    """
    order = await load_sales_order(db, sale_id, for_update=True)
    check_sales_order_ownership(order, user)

    if order.sale_status != SaleStatus.PR and not is_superuser(user):
        raise AppException(
            409,
            f"Sales order must be in {SaleStatus.PR.value} status to create a purchase order, "
            f"current status is {order.sale_status.value}",
            ErrorCode.PRECONDITION_FAILED,
        )

    ensure_permissions_current(permissions, order, user)

    if not permissions.can_create_purchase_order:
        raise AppException(
            403,
            "You don't have permission to create purchase orders for this sales order",
            ErrorCode.PERMISSION_DENIED,
        )

    items = _items_from_payload(payload) if payload.items else _items_from_sales_order(order)
    if not items:
        raise AppException(
            400,
            "Purchase order must contain at least one item",
            ErrorCode.VALIDATION_ERROR,
        )

    try:
        po_no = await next_document_number(db, PURCHASE_ORDER_PREFIX, PurchaseOrder.po_no)

        po = PurchaseOrder(
            po_no=po_no,
            sale_id=order.id,
            supplier_id=payload.supplier_id,
            user_id=user.id,
            status=PurchaseOrderStatus.DRAFT,
            total=sum((i.line_total for i in items), Decimal("0.00")),
            note=payload.note,
            created_by_id=user.id,
            updated_by_id=user.id,
            items=items,
        )
        db.add(po)

        old_status = order.sale_status
        advanced = is_valid_transition(old_status, SaleStatus.PO)
        if advanced:
            set_sale_status(order, SaleStatus.PO)
            order.updated_by_id = user.id
            order.updated_at = datetime.now(timezone.utc)

        await db.flush()

        await emit_activity(
            db=db,
            user_id=user.id,
            username=user.username,
            code=ActivityCode.CREATE_PURCHASE_ORDER,
            **actor_context(user),
            target_name=po_no,
            source_name=order.sale_no,
        )

        if advanced:
            await emit_activity(
                db=db,
                user_id=user.id,
                username=user.username,
                code=ActivityCode.CHANGE_SALES_ORDER_STATUS,
                **actor_context(user),
                target_name=order.sale_no,
                old_status=old_status.value,
                new_status=SaleStatus.PO.value,
            )

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Purchase order created",
        extra={"purchase_order_id": po.id, "po_no": po_no, "sales_order_id": sale_id},
    )

    po = await load_purchase_order(db, po.id)
    return map_purchase_order(po)


# =====================================================
# APPROVE
# =====================================================
async def approve_purchase_order(
    db: AsyncSession,
    po_id: int,
    user,
) -> PurchaseOrderOut:
    if not is_manager_purchasing(user):
        raise AppException(
            403,
            "Only purchasing managers can approve purchase orders",
            ErrorCode.PERMISSION_DENIED,
        )

    result = await db.execute(
        update(PurchaseOrder)
        .where(
            PurchaseOrder.id == po_id,
            PurchaseOrder.status == PurchaseOrderStatus.DRAFT,
            PurchaseOrder.is_deleted.is_(False),
        )
        .values(
            status=PurchaseOrderStatus.APPROVED,
            updated_by_id=user.id,
            updated_at=datetime.now(timezone.utc),
        )
        .returning(PurchaseOrder.id)
    )

    approved_id = result.scalar_one_or_none()
    if not approved_id:
        # distinguishes a missing order from one that is not a draft
        await load_purchase_order(db, po_id)
        raise AppException(
            409,
            "Only draft purchase orders can be approved",
            ErrorCode.PURCHASE_ORDER_INVALID_STATE,
        )

    po = await load_purchase_order(db, approved_id)

    await emit_activity(
        db=db,
        user_id=user.id,
        username=user.username,
        code=ActivityCode.APPROVE_PURCHASE_ORDER,
        **actor_context(user),
        target_name=po.po_no,
    )

    await db.commit()

    logger.info("Purchase order approved", extra={"purchase_order_id": approved_id})

    po = await load_purchase_order(db, approved_id)
    return map_purchase_order(po)
