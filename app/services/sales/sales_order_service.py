from datetime import datetime, timezone
from decimal import Decimal
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc

from app.models.sales.sales_order_models import (
    SalesOrder,
    SalesOrderItem,
    SalesOrderReopenEvent,
)
from app.models.sales.quotation_models import Quotation
from app.models.masters.customer_models import Customer
from app.models.masters.product_models import Product
from app.models.enums.sales_order_status import (
    SaleStatus,
    PaymentStatus,
    SalesOrderItemStatus,
    ReopenEventType,
)

from app.schemas.sales.sales_order_schemas import (
    SalesOrderUpdate,
    SalesOrderItemIn,
    SalesOrderOut,
    SalesOrderItemOut,
    ReopenEventOut,
    SalesOrderListItem,
    SalesOrderListData,
    SalesOrderPermissionsOut,
)

from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.constants.activity_codes import ActivityCode
from app.utils.activity_helpers import emit_activity, actor_context, actor_name
from app.utils.ownership import check_sales_order_ownership, scope_sales_order_query
from app.utils.reopen_protocol import append_reopen_marker, is_reopen_pending
from app.utils.sales_order_flow import (
    ACTION_TARGETS,
    FORWARD_CHAIN,
    is_valid_transition,
    legacy_status_for,
    next_possible_statuses,
)
from app.utils.sales_order_permissions import (
    SalesOrderPermissions,
    compute_sales_order_permissions,
    ensure_permissions_current,
    require_action,
    require_editable,
)
from app.utils.logger import get_logger

logger = get_logger(__name__)

STATUS_ORDER = {status: index for index, status in enumerate(FORWARD_CHAIN + (SaleStatus.CANCELLED,))}


# =====================================================
# LOADING / MAPPING
# =====================================================
async def load_sales_order(
    db: AsyncSession,
    sales_order_id: int,
    *,
    for_update: bool = False,
) -> SalesOrder:
    stmt = (
        select(SalesOrder)
        .where(
            SalesOrder.id == sales_order_id,
            SalesOrder.is_deleted.is_(False),
        )
        .execution_options(populate_existing=True)
    )
    if for_update:
        stmt = stmt.with_for_update()

    order = (await db.execute(stmt)).scalar_one_or_none()
    if not order:
        raise AppException(404, "Sales order not found", ErrorCode.SALES_ORDER_NOT_FOUND)
    return order


def map_sales_order(order: SalesOrder) -> SalesOrderOut:
    return SalesOrderOut(
        id=order.id,
        sale_no=order.sale_no,
        quotation_id=order.quotation_id,
        customer_id=order.customer_id,
        user_id=order.user_id,
        payment_term_id=order.payment_term_id,
        file_po_customer=order.file_po_customer,
        sale_status=order.sale_status,
        status=order.status,
        payment_status=order.payment_status,
        total=order.total,
        shipping=order.shipping,
        discount=order.discount,
        tax=order.tax,
        grand_total=order.grand_total,
        note=order.note,
        has_pending_reopen_request=is_reopen_pending(order),
        created_at=order.created_at,
        updated_at=order.updated_at,
        items=[
            SalesOrderItemOut(
                id=i.id,
                product_id=i.product_id,
                product_name=i.product_name,
                quantity=i.quantity,
                delivered_quantity=i.delivered_quantity,
                unit_price=i.unit_price,
                line_total=i.line_total,
                status=i.status,
            )
            for i in order.items
            if not i.is_deleted
        ],
        reopen_events=[
            ReopenEventOut(
                id=e.id,
                event_type=e.event_type,
                actor_id=e.actor_id,
                reason=e.reason,
                created_at=e.created_at,
            )
            for e in order.reopen_events
        ],
    )


def map_permissions(permissions: SalesOrderPermissions) -> SalesOrderPermissionsOut:
    return SalesOrderPermissionsOut(
        sales_order_id=permissions.sales_order_id,
        sale_status=permissions.sale_status,
        next_statuses=sorted(
            next_possible_statuses(permissions.sale_status),
            key=STATUS_ORDER.__getitem__,
        ),
        editable_fields=sorted(permissions.editable_fields),
        available_actions=sorted(permissions.available_actions),
        can_cancel=permissions.can_cancel,
        can_request_reopen=permissions.can_request_reopen,
        can_reopen=permissions.can_reopen,
        can_update_note=permissions.can_update_note,
        can_update_payment=permissions.can_update_payment,
        can_create_purchase_order=permissions.can_create_purchase_order,
        can_approve_far=permissions.can_approve_far,
    )


def set_sale_status(order: SalesOrder, new_status: SaleStatus) -> None:
    """The legacy status column always follows sale_status."""
    order.sale_status = new_status
    order.status = legacy_status_for(new_status)


def recalculate_totals(order: SalesOrder) -> None:
    order.total = sum(
        (i.line_total for i in order.items if not i.is_deleted),
        Decimal("0.00"),
    )
    order.grand_total = order.total + order.shipping + order.tax - order.discount


async def _begin_mutation(
    db: AsyncSession,
    sales_order_id: int,
    permissions: SalesOrderPermissions,
    user,
) -> SalesOrder:
    order = await load_sales_order(db, sales_order_id, for_update=True)
    check_sales_order_ownership(order, user)
    ensure_permissions_current(permissions, order, user)
    return order


async def _finish_mutation(db: AsyncSession, sales_order_id: int) -> SalesOrderOut:
    await db.commit()
    order = await load_sales_order(db, sales_order_id)
    return map_sales_order(order)


def _require_pr(order: SalesOrder) -> None:
    if order.sale_status != SaleStatus.PR:
        raise AppException(
            409,
            f"Reopen is only possible from {SaleStatus.PR.value}, "
            f"sales order is {order.sale_status.value}",
            ErrorCode.SALES_ORDER_INVALID_TRANSITION,
        )


# =====================================================
# READ
# =====================================================
async def get_sales_order(
    db: AsyncSession,
    sales_order_id: int,
    user,
) -> SalesOrderOut:
    order = await load_sales_order(db, sales_order_id)
    check_sales_order_ownership(order, user)
    return map_sales_order(order)


async def list_sales_orders(
    db: AsyncSession,
    user,
    sale_status: SaleStatus | None = None,
    payment_status: PaymentStatus | None = None,
    customer_id: int | None = None,
    page: int = 1,
    page_size: int = 20,
) -> SalesOrderListData:
    stmt = select(SalesOrder).where(SalesOrder.is_deleted.is_(False))

    if sale_status:
        stmt = stmt.where(SalesOrder.sale_status == sale_status)
    if payment_status:
        stmt = stmt.where(SalesOrder.payment_status == payment_status)
    if customer_id:
        stmt = stmt.where(SalesOrder.customer_id == customer_id)

    stmt = scope_sales_order_query(stmt, user)

    total = await db.scalar(select(func.count()).select_from(stmt.subquery()))

    result = await db.execute(
        stmt
        .order_by(desc(SalesOrder.created_at), desc(SalesOrder.id))
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    return SalesOrderListData(
        total=total or 0,
        items=[
            SalesOrderListItem(
                id=o.id,
                sale_no=o.sale_no,
                customer_id=o.customer_id,
                user_id=o.user_id,
                sale_status=o.sale_status,
                payment_status=o.payment_status,
                grand_total=o.grand_total,
                created_at=o.created_at,
            )
            for o in result.scalars()
        ],
    )


async def get_sales_order_permissions(
    db: AsyncSession,
    sales_order_id: int,
    user,
) -> SalesOrderPermissions:
    order = await load_sales_order(db, sales_order_id)
    check_sales_order_ownership(order, user)
    return compute_sales_order_permissions(order, user)


# =====================================================
# UPDATE
# =====================================================
async def _build_items(
    db: AsyncSession,
    items: List[SalesOrderItemIn],
) -> List[SalesOrderItem]:
    product_ids = {i.product_id for i in items if i.product_id is not None}
    products = {}
    if product_ids:
        result = await db.execute(
            select(Product).where(
                Product.id.in_(product_ids),
                Product.is_deleted.is_(False),
            )
        )
        products = {p.id: p for p in result.scalars()}
        if len(products) != len(product_ids):
            raise AppException(404, "Invalid product IDs", ErrorCode.NOT_FOUND)

    built = []
    for i in items:
        product = products.get(i.product_id)
        built.append(
            SalesOrderItem(
                product_id=i.product_id,
                product_name=i.product_name or product.name,
                quantity=i.quantity,
                delivered_quantity=0,
                unit_price=i.unit_price,
                line_total=i.unit_price * i.quantity,
                status=SalesOrderItemStatus.ACTIVE,
            )
        )
    return built


async def update_sales_order(
    db: AsyncSession,
    sales_order_id: int,
    payload: SalesOrderUpdate,
    permissions: SalesOrderPermissions,
    user,
) -> SalesOrderOut:
    order = await _begin_mutation(db, sales_order_id, permissions, user)

    data = payload.model_dump(exclude_unset=True)
    if not data:
        return map_sales_order(order)

    require_editable(permissions, data.keys())

    if "quotation_id" in data and data["quotation_id"] != order.quotation_id:
        quotation_id = data["quotation_id"]
        if quotation_id is not None:
            quotation = await db.get(Quotation, quotation_id)
            if not quotation or quotation.is_deleted:
                raise AppException(404, "Quotation not found", ErrorCode.QUOTATION_NOT_FOUND)
            taken = await db.scalar(
                select(SalesOrder.id).where(
                    SalesOrder.quotation_id == quotation_id,
                    SalesOrder.id != order.id,
                )
            )
            if taken:
                raise AppException(
                    409,
                    "Quotation already belongs to another sales order",
                    ErrorCode.QUOTATION_ALREADY_CONVERTED,
                )
        order.quotation_id = quotation_id

    if "customer_id" in data and data["customer_id"] != order.customer_id:
        customer = await db.get(Customer, data["customer_id"]) if data["customer_id"] else None
        if not customer or customer.is_deleted or not customer.is_active:
            raise AppException(404, "Customer not found", ErrorCode.CUSTOMER_NOT_FOUND)
        order.customer_id = customer.id

    for field in ("note", "payment_term_id", "file_po_customer"):
        if field in data:
            setattr(order, field, data[field])

    if "payment_status" in data:
        if data["payment_status"] is None:
            raise AppException(400, "payment_status cannot be empty", ErrorCode.VALIDATION_ERROR)
        order.payment_status = data["payment_status"]

    if "items" in data:
        # delete-orphan removes the replaced lines
        order.items = await _build_items(db, payload.items or [])
        recalculate_totals(order)

    order.updated_by_id = user.id
    order.updated_at = datetime.now(timezone.utc)

    await db.flush()

    await emit_activity(
        db=db,
        user_id=user.id,
        username=user.username,
        code=ActivityCode.UPDATE_SALES_ORDER,
        **actor_context(user),
        target_name=order.sale_no,
        changes=", ".join(sorted(data.keys())),
    )

    logger.info(
        "Sales order updated",
        extra={"sales_order_id": order.id, "fields": sorted(data.keys())},
    )

    return await _finish_mutation(db, order.id)


# =====================================================
# LIFECYCLE ACTIONS
# =====================================================
async def perform_sales_order_action(
    db: AsyncSession,
    sales_order_id: int,
    action: str,
    permissions: SalesOrderPermissions,
    user,
) -> SalesOrderOut:
    if action not in ACTION_TARGETS:
        raise AppException(400, f"Unknown sales order action '{action}'", ErrorCode.VALIDATION_ERROR)

    if action == "reopen_to_new":
        return await approve_reopen(db, sales_order_id, permissions, user)

    order = await _begin_mutation(db, sales_order_id, permissions, user)
    require_action(permissions, action)

    target = ACTION_TARGETS[action]
    old_status = order.sale_status
    if not is_valid_transition(old_status, target):
        raise AppException(
            409,
            f"Cannot move sales order from {old_status.value} to {target.value}",
            ErrorCode.SALES_ORDER_INVALID_TRANSITION,
        )

    set_sale_status(order, target)

    if target == SaleStatus.CANCELLED:
        for item in order.items:
            if item.status == SalesOrderItemStatus.ACTIVE:
                item.status = SalesOrderItemStatus.CANCELLED
                item.updated_at = datetime.now(timezone.utc)

    order.updated_by_id = user.id
    order.updated_at = datetime.now(timezone.utc)

    if target == SaleStatus.CANCELLED:
        await emit_activity(
            db=db,
            user_id=user.id,
            username=user.username,
            code=ActivityCode.CANCEL_SALES_ORDER,
            **actor_context(user),
            target_name=order.sale_no,
        )
    else:
        await emit_activity(
            db=db,
            user_id=user.id,
            username=user.username,
            code=ActivityCode.CHANGE_SALES_ORDER_STATUS,
            **actor_context(user),
            target_name=order.sale_no,
            old_status=old_status.value,
            new_status=target.value,
        )

    logger.info(
        "Sales order status changed",
        extra={
            "sales_order_id": order.id,
            "action": action,
            "old_status": old_status.value,
            "new_status": target.value,
        },
    )

    return await _finish_mutation(db, order.id)


# =====================================================
# REOPEN PROTOCOL (PR -> NEW)
# =====================================================
def _record_reopen_event(
    order: SalesOrder,
    event_type: ReopenEventType,
    user,
    reason: str | None,
) -> None:
    order.reopen_events.append(
        SalesOrderReopenEvent(
            event_type=event_type,
            actor_id=user.id,
            reason=reason,
        )
    )
    order.note = append_reopen_marker(order.note, event_type, actor_name(user), reason)
    order.updated_by_id = user.id
    order.updated_at = datetime.now(timezone.utc)


async def request_reopen(
    db: AsyncSession,
    sales_order_id: int,
    permissions: SalesOrderPermissions,
    user,
    reason: str | None = None,
) -> SalesOrderOut:
    order = await _begin_mutation(db, sales_order_id, permissions, user)
    _require_pr(order)

    if not permissions.can_request_reopen:
        raise AppException(
            403,
            "You don't have permission to request a reopen of this sales order",
            ErrorCode.PERMISSION_DENIED,
        )

    if is_reopen_pending(order):
        raise AppException(
            409,
            "A reopen request is already pending for this sales order",
            ErrorCode.REOPEN_ALREADY_PENDING,
        )

    _record_reopen_event(order, ReopenEventType.REQUEST, user, reason)

    await emit_activity(
        db=db,
        user_id=user.id,
        username=user.username,
        code=ActivityCode.REQUEST_REOPEN,
        **actor_context(user),
        target_name=order.sale_no,
    )

    logger.info("Reopen requested", extra={"sales_order_id": order.id, "user_id": user.id})

    return await _finish_mutation(db, order.id)


async def approve_reopen(
    db: AsyncSession,
    sales_order_id: int,
    permissions: SalesOrderPermissions,
    user,
    reason: str | None = None,
) -> SalesOrderOut:
    """Moves PR back to NEW, with or without a pending request."""
    order = await _begin_mutation(db, sales_order_id, permissions, user)
    _require_pr(order)
    require_action(permissions, "reopen_to_new")

    was_requested = is_reopen_pending(order)

    set_sale_status(order, SaleStatus.NEW)
    _record_reopen_event(order, ReopenEventType.APPROVE, user, reason)

    await emit_activity(
        db=db,
        user_id=user.id,
        username=user.username,
        code=ActivityCode.APPROVE_REOPEN,
        **actor_context(user),
        target_name=order.sale_no,
    )

    logger.info(
        "Sales order reopened",
        extra={"sales_order_id": order.id, "user_id": user.id, "was_requested": was_requested},
    )

    return await _finish_mutation(db, order.id)


async def reject_reopen(
    db: AsyncSession,
    sales_order_id: int,
    permissions: SalesOrderPermissions,
    user,
    reason: str | None = None,
) -> SalesOrderOut:
    order = await _begin_mutation(db, sales_order_id, permissions, user)
    _require_pr(order)

    if not permissions.can_reopen:
        raise AppException(
            403,
            "You don't have permission to reject reopen requests",
            ErrorCode.PERMISSION_DENIED,
        )

    if not is_reopen_pending(order):
        raise AppException(
            409,
            "There is no pending reopen request for this sales order",
            ErrorCode.REOPEN_NOT_PENDING,
        )

    _record_reopen_event(order, ReopenEventType.REJECT, user, reason)

    await emit_activity(
        db=db,
        user_id=user.id,
        username=user.username,
        code=ActivityCode.REJECT_REOPEN,
        **actor_context(user),
        target_name=order.sale_no,
    )

    logger.info("Reopen rejected", extra={"sales_order_id": order.id, "user_id": user.id})

    return await _finish_mutation(db, order.id)
