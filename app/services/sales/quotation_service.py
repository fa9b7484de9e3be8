from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc

from app.models.sales.quotation_models import Quotation
from app.models.sales.sales_order_models import SalesOrder, SalesOrderItem
from app.models.enums.quotation_status import QuotationStatus, QuotationStage
from app.models.enums.sales_order_status import (
    SaleStatus,
    PaymentStatus,
    SalesOrderItemStatus,
)

from app.schemas.sales.quotation_schemas import (
    QuotationStatusUpdate,
    QuotationOut,
    QuotationItemOut,
    QuotationListItem,
    QuotationListData,
)
from app.schemas.sales.sales_order_schemas import SalesOrderOut

from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.constants.activity_codes import ActivityCode
from app.utils.activity_helpers import emit_activity, actor_context
from app.utils.ownership import check_quotation_ownership, scope_quotation_query
from app.utils.quotation_permissions import (
    normalize_quotation_status,
    normalize_quotation_stage,
    validate_quotation_change,
)
from app.utils.sales_order_flow import legacy_status_for
from app.services.sales.sales_order_service import load_sales_order, map_sales_order
from app.services.support.document_number_service import (
    next_document_number,
    SALES_ORDER_PREFIX,
)
from app.utils.logger import get_logger

logger = get_logger(__name__)

CONVERTIBLE_STATUSES = frozenset({QuotationStatus.win, QuotationStatus.approved})


# =====================================================
# LOADING / MAPPING
# =====================================================
async def load_quotation(
    db: AsyncSession,
    quotation_id: int,
    *,
    for_update: bool = False,
) -> Quotation:
    stmt = (
        select(Quotation)
        .where(
            Quotation.id == quotation_id,
            Quotation.is_deleted.is_(False),
        )
        .execution_options(populate_existing=True)
    )
    if for_update:
        stmt = stmt.with_for_update()

    q = (await db.execute(stmt)).scalar_one_or_none()
    if not q:
        raise AppException(404, "Quotation not found", ErrorCode.QUOTATION_NOT_FOUND)
    return q


def map_quotation(q: Quotation) -> QuotationOut:
    return QuotationOut(
        id=q.id,
        quotation_no=q.quotation_no,
        customer_id=q.customer_id,
        lead_id=q.lead_id,
        user_id=q.user_id,
        status=q.status,
        stage=q.stage,
        total=q.total,
        shipping=q.shipping,
        discount=q.discount,
        tax=q.tax,
        grand_total=q.grand_total,
        note=q.note,
        created_at=q.created_at,
        updated_at=q.updated_at,
        items=[
            QuotationItemOut(
                id=i.id,
                product_id=i.product_id,
                product_name=i.product_name,
                quantity=i.quantity,
                unit_price=i.unit_price,
                line_total=i.line_total,
            )
            for i in q.items
            if not i.is_deleted
        ],
    )


def is_convertible(q: Quotation) -> bool:
    status = normalize_quotation_status(q.status)
    if status in CONVERTIBLE_STATUSES:
        return True
    return (
        status == QuotationStatus.sent
        and normalize_quotation_stage(q.stage) == QuotationStage.sent
    )


# =====================================================
# READ
# =====================================================
async def get_quotation(
    db: AsyncSession,
    quotation_id: int,
    user,
) -> QuotationOut:
    q = await load_quotation(db, quotation_id)
    check_quotation_ownership(q, user)
    return map_quotation(q)


async def list_quotations(
    db: AsyncSession,
    user,
    status: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> QuotationListData:
    stmt = select(Quotation).where(Quotation.is_deleted.is_(False))

    if status:
        normalized = normalize_quotation_status(status)
        if normalized is None:
            raise AppException(400, f"Unknown quotation status {status}", ErrorCode.VALIDATION_ERROR)
        stmt = stmt.where(Quotation.status == normalized.value)

    stmt = scope_quotation_query(stmt, user)

    total = await db.scalar(select(func.count()).select_from(stmt.subquery()))

    result = await db.execute(
        stmt
        .order_by(desc(Quotation.created_at), desc(Quotation.id))
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    return QuotationListData(
        total=total or 0,
        items=[
            QuotationListItem(
                id=q.id,
                quotation_no=q.quotation_no,
                customer_id=q.customer_id,
                user_id=q.user_id,
                status=q.status,
                stage=q.stage,
                grand_total=q.grand_total,
                created_at=q.created_at,
            )
            for q in result.scalars()
        ],
    )


# =====================================================
# STATUS
# =====================================================
async def change_quotation_status(
    db: AsyncSession,
    quotation_id: int,
    payload: QuotationStatusUpdate,
    user,
) -> QuotationOut:
    q = await load_quotation(db, quotation_id, for_update=True)
    check_quotation_ownership(q, user)

    if normalize_quotation_status(q.status) == QuotationStatus.converted:
        raise AppException(
            409,
            "Converted quotations cannot be changed",
            ErrorCode.QUOTATION_INVALID_STATE,
        )

    new_status = normalize_quotation_status(payload.status)
    new_stage = normalize_quotation_stage(payload.stage)
    if new_status is None or new_stage is None:
        raise AppException(
            400,
            "Unknown quotation status or stage",
            ErrorCode.VALIDATION_ERROR,
            details={"status": payload.status, "stage": payload.stage},
        )

    if new_status == QuotationStatus.converted:
        raise AppException(
            409,
            f"Status {new_status.value} is only reached by converting to a sales order",
            ErrorCode.QUOTATION_INVALID_STATE,
        )

    errors = validate_quotation_change(user, new_status, new_stage)
    if errors:
        raise AppException(
            403,
            "Quotation status change not allowed",
            ErrorCode.PERMISSION_DENIED,
            details={"errors": errors},
        )

    q.status = new_status.value
    q.stage = new_stage.value
    q.updated_by_id = user.id
    q.updated_at = datetime.now(timezone.utc)

    await emit_activity(
        db=db,
        user_id=user.id,
        username=user.username,
        code=ActivityCode.UPDATE_QUOTATION_STATUS,
        **actor_context(user),
        target_name=q.quotation_no,
        new_status=new_status.value,
        new_stage=new_stage.value,
    )

    await db.commit()

    logger.info(
        "Quotation status changed",
        extra={"quotation_id": q.id, "status": new_status.value, "stage": new_stage.value},
    )

    q = await load_quotation(db, quotation_id)
    return map_quotation(q)


# =====================================================
# CONVERSION
# =====================================================
async def convert_quotation_to_sales_order(
    db: AsyncSession,
    quotation_id: int,
    user,
) -> SalesOrderOut:
    q = await load_quotation(db, quotation_id, for_update=True)
    check_quotation_ownership(q, user)

    if normalize_quotation_status(q.status) == QuotationStatus.converted:
        raise AppException(
            409,
            "This quotation has already been converted to a sales order",
            ErrorCode.QUOTATION_ALREADY_CONVERTED,
        )

    if not is_convertible(q):
        raise AppException(
            409,
            "Only quotations with status sq_win or sq_approved, "
            "or sq_sent at stage sent, can be converted to a sales order",
            ErrorCode.PRECONDITION_FAILED,
            details={"status": q.status, "stage": q.stage},
        )

    existing = await db.scalar(
        select(SalesOrder.id).where(SalesOrder.quotation_id == q.id)
    )
    if existing:
        raise AppException(
            409,
            "This quotation has already been converted to a sales order",
            ErrorCode.QUOTATION_ALREADY_CONVERTED,
        )

    try:
        sale_no = await next_document_number(db, SALES_ORDER_PREFIX, SalesOrder.sale_no)

        items = [
            SalesOrderItem(
                product_id=i.product_id,
                product_name=i.product_name,
                quantity=i.quantity,
                delivered_quantity=0,
                unit_price=i.unit_price,
                line_total=i.unit_price * i.quantity,
                status=SalesOrderItemStatus.ACTIVE,
            )
            for i in q.items
            if not i.is_deleted
        ]

        order = SalesOrder(
            sale_no=sale_no,
            quotation_id=q.id,
            customer_id=q.customer_id,
            # the order stays with the sales user who owns the quotation
            user_id=q.user_id if q.user_id is not None else user.id,
            sale_status=SaleStatus.NEW,
            status=legacy_status_for(SaleStatus.NEW),
            payment_status=PaymentStatus.UNPAID,
            total=q.total or Decimal("0.00"),
            shipping=q.shipping or Decimal("0.00"),
            discount=q.discount or Decimal("0.00"),
            tax=q.tax or Decimal("0.00"),
            grand_total=q.grand_total or Decimal("0.00"),
            note=f"Converted from quotation {q.quotation_no}",
            created_by_id=user.id,
            updated_by_id=user.id,
            items=items,
            reopen_events=[],
        )
        db.add(order)

        q.status = QuotationStatus.converted.value
        q.stage = QuotationStage.closed.value
        q.updated_by_id = user.id
        q.updated_at = datetime.now(timezone.utc)

        await db.flush()

        await emit_activity(
            db=db,
            user_id=user.id,
            username=user.username,
            code=ActivityCode.CONVERT_QUOTATION_TO_SALES_ORDER,
            **actor_context(user),
            source_name=q.quotation_no,
            target_name=sale_no,
        )

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Quotation converted to sales order",
        extra={"quotation_id": quotation_id, "sales_order_id": order.id, "sale_no": sale_no},
    )

    order = await load_sales_order(db, order.id)
    return map_sales_order(order)
