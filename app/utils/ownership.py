"""
Record ownership guard.

A denied check raises the same 404 a missing record raises, so callers
cannot probe for records they are not allowed to see.
"""

from sqlalchemy import or_, false

from app.constants.error_codes import ErrorCode
from app.core.exceptions import AppException
from app.models.crm.lead_models import Lead
from app.models.sales.quotation_models import Quotation
from app.models.sales.sales_order_models import SalesOrder
from app.models.purchasing.purchase_order_models import PurchaseOrder
from app.utils.role_helpers import (
    can_access_all,
    is_sales,
    is_purchasing,
    is_warehouse,
    is_finance,
    same_user,
)


def validate_ownership(resource_user_id, user) -> bool:
    if can_access_all(user):
        return True
    if is_sales(user):
        return same_user(resource_user_id, user)
    return False


def can_view_lead(lead, user) -> bool:
    if user is None or lead is None:
        return False
    if can_access_all(user):
        return True
    if is_sales(user):
        return same_user(lead.id_user, user) or same_user(lead.assigned_to, user)
    return False


def can_view_quotation(quotation, user) -> bool:
    if user is None or quotation is None:
        return False
    return validate_ownership(quotation.user_id, user)


def _has_downstream_visibility(user) -> bool:
    return is_purchasing(user) or is_warehouse(user) or is_finance(user)


def can_view_sales_order(sales_order, user) -> bool:
    if user is None or sales_order is None:
        return False
    if can_access_all(user) or _has_downstream_visibility(user):
        return True
    if is_sales(user):
        return same_user(sales_order.user_id, user)
    return False


def can_view_purchase_order(purchase_order, user) -> bool:
    if user is None or purchase_order is None:
        return False
    return can_access_all(user) or _has_downstream_visibility(user)


# =====================================================
# GUARDS (raise not-found on denial)
# =====================================================
def check_lead_ownership(lead, user) -> bool:
    if not can_view_lead(lead, user):
        raise AppException(404, "Lead not found", ErrorCode.LEAD_NOT_FOUND)
    return True


def check_opportunity_ownership(opportunity, user) -> bool:
    # an opportunity is a lead in an opportunity-stage status
    return check_lead_ownership(opportunity, user)


def check_quotation_ownership(quotation, user) -> bool:
    if not can_view_quotation(quotation, user):
        raise AppException(404, "Quotation not found", ErrorCode.QUOTATION_NOT_FOUND)
    return True


def check_sales_order_ownership(sales_order, user) -> bool:
    if not can_view_sales_order(sales_order, user):
        raise AppException(404, "Sales order not found", ErrorCode.SALES_ORDER_NOT_FOUND)
    return True


def check_purchase_order_ownership(purchase_order, user) -> bool:
    if not can_view_purchase_order(purchase_order, user):
        raise AppException(404, "Purchase order not found", ErrorCode.PURCHASE_ORDER_NOT_FOUND)
    return True


_GUARDS = {
    Lead: check_lead_ownership,
    Quotation: check_quotation_ownership,
    SalesOrder: check_sales_order_ownership,
    PurchaseOrder: check_purchase_order_ownership,
}


def check_ownership(record, user) -> bool:
    guard = _GUARDS.get(type(record))
    if guard is None:
        raise TypeError(f"No ownership rule for {type(record).__name__}")
    return guard(record, user)


# =====================================================
# LIST SCOPING
# =====================================================
def scope_sales_order_query(stmt, user):
    if can_access_all(user) or _has_downstream_visibility(user):
        return stmt
    if is_sales(user):
        return stmt.where(SalesOrder.user_id == user.id)
    return stmt.where(false())


def scope_quotation_query(stmt, user):
    if can_access_all(user):
        return stmt
    if is_sales(user):
        return stmt.where(Quotation.user_id == user.id)
    return stmt.where(false())


def scope_lead_query(stmt, user):
    if can_access_all(user):
        return stmt
    if is_sales(user):
        return stmt.where(or_(Lead.id_user == user.id, Lead.assigned_to == user.id))
    return stmt.where(false())
