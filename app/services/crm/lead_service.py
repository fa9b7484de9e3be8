from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_, desc

from app.models.crm.lead_models import Lead
from app.models.masters.customer_models import Customer
from app.models.masters.product_models import Product
from app.models.sales.quotation_models import Quotation, QuotationItem
from app.models.enums.lead_status import OpportunityStatus
from app.models.enums.quotation_status import QuotationStatus, QuotationStage

from app.schemas.crm.lead_schemas import LeadOut, LeadListData
from app.schemas.sales.quotation_schemas import QuotationOut

from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.constants.activity_codes import ActivityCode
from app.utils.activity_helpers import emit_activity, actor_context, actor_name
from app.utils.opportunity_access import (
    is_opportunity,
    can_convert_opportunity_to_sq,
    can_update_opportunity_status,
)
from app.utils.ownership import check_lead_ownership, check_opportunity_ownership, scope_lead_query
from app.services.sales.quotation_service import load_quotation, map_quotation
from app.services.support.document_number_service import (
    next_document_number,
    QUOTATION_PREFIX,
    QUOTATION_REVISION,
)
from app.utils.logger import get_logger

logger = get_logger(__name__)


# =====================================================
# HELPERS
# =====================================================
async def _get_lead(
    db: AsyncSession,
    lead_id: int,
    *,
    for_update: bool = False,
) -> Lead:
    stmt = (
        select(Lead)
        .where(
            Lead.id == lead_id,
            Lead.is_deleted.is_(False),
        )
        .execution_options(populate_existing=True)
    )
    if for_update:
        stmt = stmt.with_for_update()

    lead = (await db.execute(stmt)).scalar_one_or_none()
    if not lead:
        raise AppException(404, "Lead not found", ErrorCode.LEAD_NOT_FOUND)
    return lead


def _map_lead(lead: Lead) -> LeadOut:
    return LeadOut(
        id=lead.id,
        reference_no=lead.reference_no,
        lead_name=lead.lead_name,
        contact=lead.contact,
        email=lead.email,
        phone=lead.phone,
        company=lead.company,
        product_interest=lead.product_interest,
        source=lead.source,
        note=lead.note,
        status=lead.status,
        id_user=lead.id_user,
        assigned_to=lead.assigned_to,
        created_at=lead.created_at,
        updated_at=lead.updated_at,
    )


def _append_note(note: str | None, line: str) -> str:
    return f"{note}\n{line}" if note else line


def _interest_names(product_interest: str | None) -> List[str]:
    names: List[str] = []
    for raw in (product_interest or "").split(","):
        name = raw.strip()
        if name and name not in names:
            names.append(name)
    return names


async def _resolve_customer(
    db: AsyncSession,
    lead: Lead,
    customer_id: int | None,
    user,
) -> Customer:
    if customer_id is not None:
        customer = await db.get(Customer, customer_id)
        if not customer or customer.is_deleted or not customer.is_active:
            raise AppException(404, "Customer not found", ErrorCode.CUSTOMER_NOT_FOUND)
        return customer

    matches = [Customer.name == lead.lead_name]
    if lead.email:
        matches.append(Customer.email == lead.email)

    existing = (
        await db.execute(
            select(Customer)
            .where(
                or_(*matches),
                Customer.is_deleted.is_(False),
                Customer.is_active.is_(True),
            )
            .order_by(Customer.id)
            .limit(1)
        )
    ).scalar_one_or_none()
    if existing:
        return existing

    customer = Customer(
        name=lead.lead_name,
        email=lead.email,
        phone=lead.phone,
        type=lead.type,
        note=f"Created from lead {lead.reference_no or lead.id}",
        created_by_id=user.id,
        updated_by_id=user.id,
    )
    db.add(customer)
    await db.flush()

    logger.info("Customer created from lead", extra={"lead_id": lead.id, "customer_id": customer.id})
    return customer


async def _fetch_products_by_name(
    db: AsyncSession,
    names: List[str],
) -> Dict[str, Product]:
    if not names:
        return {}
    result = await db.execute(
        select(Product).where(
            Product.name.in_(names),
            Product.is_deleted.is_(False),
        )
    )
    return {p.name: p for p in result.scalars()}


# =====================================================
# READ
# =====================================================
async def get_lead(
    db: AsyncSession,
    lead_id: int,
    user,
) -> LeadOut:
    lead = await _get_lead(db, lead_id)
    check_lead_ownership(lead, user)
    return _map_lead(lead)


async def list_opportunities(
    db: AsyncSession,
    user,
    status: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> LeadListData:
    opportunity_statuses = [s.value for s in OpportunityStatus]
    stmt = select(Lead).where(
        Lead.is_deleted.is_(False),
        Lead.status.in_(opportunity_statuses),
    )
    if status:
        stmt = stmt.where(Lead.status == status)
    stmt = scope_lead_query(stmt, user)

    total = await db.scalar(select(func.count()).select_from(stmt.subquery()))

    result = await db.execute(
        stmt
        .order_by(desc(Lead.created_at), desc(Lead.id))
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    return LeadListData(
        total=total or 0,
        items=[_map_lead(lead) for lead in result.scalars()],
    )


# =====================================================
# STATUS
# =====================================================
async def update_opportunity_status(
    db: AsyncSession,
    lead_id: int,
    new_status: OpportunityStatus,
    user,
) -> LeadOut:
    lead = await _get_lead(db, lead_id, for_update=True)
    check_opportunity_ownership(lead, user)

    if not is_opportunity(lead):
        raise AppException(
            409,
            "Lead is not an opportunity yet",
            ErrorCode.OPPORTUNITY_INVALID_STATUS,
        )

    target = OpportunityStatus(new_status).value
    allowed, reason = can_update_opportunity_status(user, lead, target)
    if not allowed:
        raise AppException(403, reason, ErrorCode.PERMISSION_DENIED)

    old_status = lead.status
    if old_status == target:
        return _map_lead(lead)

    lead.status = target
    lead.updated_at = datetime.now(timezone.utc)

    await emit_activity(
        db=db,
        user_id=user.id,
        username=user.username,
        code=ActivityCode.UPDATE_OPPORTUNITY_STATUS,
        **actor_context(user),
        target_name=lead.lead_name,
        old_status=old_status,
        new_status=target,
    )

    await db.commit()

    logger.info(
        "Opportunity status updated",
        extra={"lead_id": lead.id, "old_status": old_status, "new_status": target},
    )

    lead = await _get_lead(db, lead_id)
    return _map_lead(lead)


# =====================================================
# CONVERSION
# =====================================================
async def convert_lead_to_quotation(
    db: AsyncSession,
    lead_id: int,
    user,
    customer_id: int | None = None,
) -> QuotationOut:
    """
    Turns a prospecting opportunity into a draft quotation.

    Customer, quotation, items and the lead status change are written in one
    transaction.
    """
    lead = await _get_lead(db, lead_id, for_update=True)
    check_opportunity_ownership(lead, user)

    allowed, reason = can_convert_opportunity_to_sq(user, lead)
    if not allowed:
        raise AppException(409, reason, ErrorCode.PRECONDITION_FAILED)

    existing = await db.scalar(
        select(Quotation.quotation_no).where(
            Quotation.lead_id == lead.id,
            Quotation.is_deleted.is_(False),
        )
    )
    if existing:
        raise AppException(
            409,
            f"Opportunity was already converted to quotation {existing}",
            ErrorCode.LEAD_ALREADY_CONVERTED,
        )

    try:
        customer = await _resolve_customer(db, lead, customer_id, user)

        names = _interest_names(lead.product_interest)
        products = await _fetch_products_by_name(db, names)

        items = []
        for name in names:
            product = products.get(name)
            if product is None:
                logger.info("Product of interest not in catalog", extra={"lead_id": lead.id, "product_name": name})
                continue
            unit_price = product.price if product.price is not None else Decimal("0.00")
            items.append(
                QuotationItem(
                    product_id=product.id,
                    product_name=product.name,
                    quantity=1,
                    unit_price=unit_price,
                    line_total=unit_price,
                )
            )

        total = sum((i.line_total for i in items), Decimal("0.00"))

        quotation_no = await next_document_number(
            db,
            QUOTATION_PREFIX,
            Quotation.quotation_no,
            revision=QUOTATION_REVISION,
        )

        quotation = Quotation(
            quotation_no=quotation_no,
            customer_id=customer.id,
            lead_id=lead.id,
            user_id=user.id,
            status=QuotationStatus.draft.value,
            stage=QuotationStage.draft.value,
            total=total,
            shipping=Decimal("0.00"),
            discount=Decimal("0.00"),
            tax=Decimal("0.00"),
            grand_total=total,
            note=f"Created from opportunity {lead.lead_name}",
            created_by_id=user.id,
            updated_by_id=user.id,
            items=items,
        )
        db.add(quotation)

        lead.status = OpportunityStatus.sq.value
        lead.note = _append_note(
            lead.note,
            f"Converted to quotation {quotation_no} by {actor_name(user)}",
        )
        lead.updated_at = datetime.now(timezone.utc)

        await db.flush()

        await emit_activity(
            db=db,
            user_id=user.id,
            username=user.username,
            code=ActivityCode.CONVERT_LEAD_TO_QUOTATION,
            **actor_context(user),
            source_name=lead.lead_name,
            target_name=quotation_no,
        )

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Opportunity converted to quotation",
        extra={"lead_id": lead_id, "quotation_id": quotation.id, "quotation_no": quotation_no},
    )

    quotation = await load_quotation(db, quotation.id)
    return map_quotation(quotation)
