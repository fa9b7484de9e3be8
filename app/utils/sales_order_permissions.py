"""
Sales order permission engine.

`compute_sales_order_permissions` is a pure function of (order, user). It
never raises: unknown users or statuses yield the empty default. The result
is also the capability token every mutating sales order service requires,
see `ensure_permissions_current`.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field

from app.constants.error_codes import ErrorCode
from app.core.exceptions import AppException
from app.models.enums.sales_order_status import SaleStatus
from app.utils.role_helpers import (
    is_superuser,
    is_sales,
    is_manager_sales,
    is_purchasing,
    is_manager_purchasing,
    is_warehouse,
    is_finance,
    same_user,
)
from app.utils.sales_order_flow import (
    normalize_sale_status,
    PURCHASING_STATUSES,
    PURCHASING_FORWARD_ACTIONS,
    TERMINAL_STATUSES,
)

NEW_STATUS_EDITABLE_FIELDS = frozenset({
    "note",
    "quotation_id",
    "customer_id",
    "payment_term_id",
    "items",
    "file_po_customer",
})


@dataclass(frozen=True)
class SalesOrderPermissions:
    sales_order_id: int | None = None
    user_id: int | None = None
    sale_status: SaleStatus | None = None
    editable_fields: frozenset[str] = field(default_factory=frozenset)
    available_actions: frozenset[str] = field(default_factory=frozenset)
    can_cancel: bool = False
    can_request_reopen: bool = False
    can_reopen: bool = False
    can_update_note: bool = False
    can_update_payment: bool = False
    can_create_purchase_order: bool = False
    can_approve_far: bool = False


def _read(source, key: str):
    if isinstance(source, Mapping):
        return source.get(key)
    return getattr(source, key, None)


def _order_status(order) -> SaleStatus | None:
    status = normalize_sale_status(_read(order, "sale_status"))
    if status is None:
        # legacy rows only carry the generic status column
        status = normalize_sale_status(_read(order, "status"))
    return status


def compute_sales_order_permissions(order, user) -> SalesOrderPermissions:
    if user is None or order is None:
        return SalesOrderPermissions()

    status = _order_status(order)
    order_id = _read(order, "id")
    user_id = _read(user, "id")

    if status is None:
        return SalesOrderPermissions(sales_order_id=order_id, user_id=user_id)

    is_owner = same_user(_read(order, "user_id"), user) or is_superuser(user)
    # plain sales staff act on their own orders only
    acts_as_sales = is_manager_sales(user) or (is_sales(user) and is_owner)
    can_reopen = is_superuser(user) or is_manager_sales(user) or is_manager_purchasing(user)

    editable: set[str] = set()
    actions: set[str] = set()
    can_request_reopen = False
    can_approve_far = False
    can_create_purchase_order = False

    if status == SaleStatus.NEW:
        if acts_as_sales:
            editable |= NEW_STATUS_EDITABLE_FIELDS
            actions.add("update_status_pr")

    elif status in PURCHASING_STATUSES:
        if is_purchasing(user):
            editable.add("note")
            actions.add(PURCHASING_FORWARD_ACTIONS[status])

        if status == SaleStatus.PR:
            can_create_purchase_order = is_purchasing(user)
            if can_reopen:
                actions.add("reopen_to_new")
            elif is_sales(user) and is_owner:
                can_request_reopen = True

        if status == SaleStatus.FAR and is_finance(user):
            actions.add("approve_far")
            can_approve_far = True

    elif status == SaleStatus.DELIVERY:
        if is_warehouse(user):
            actions.add("update_status_delivered")

    elif status == SaleStatus.DELIVERED:
        if acts_as_sales:
            actions.add("update_status_received")

    elif status == SaleStatus.RECEIVED:
        if acts_as_sales:
            actions.add("complete")

    if status not in TERMINAL_STATUSES:
        if is_superuser(user) or is_manager_sales(user):
            actions.add("cancel")

    if status not in (SaleStatus.NEW, SaleStatus.CANCELLED) and is_finance(user):
        editable.add("payment_status")

    # superuser may raise a purchase order outside PR
    if is_superuser(user) and status not in TERMINAL_STATUSES:
        can_create_purchase_order = True

    return SalesOrderPermissions(
        sales_order_id=order_id,
        user_id=user_id,
        sale_status=status,
        editable_fields=frozenset(editable),
        available_actions=frozenset(actions),
        can_cancel="cancel" in actions,
        can_request_reopen=can_request_reopen,
        can_reopen="reopen_to_new" in actions,
        can_update_note="note" in editable,
        can_update_payment="payment_status" in editable,
        can_create_purchase_order=can_create_purchase_order,
        can_approve_far=can_approve_far,
    )


def is_field_editable(field_name: str, permissions: SalesOrderPermissions) -> bool:
    return field_name in permissions.editable_fields


def is_action_available(action: str, permissions: SalesOrderPermissions) -> bool:
    return action in permissions.available_actions


# =====================================================
# ENFORCEMENT
# =====================================================
def ensure_permissions_current(permissions: SalesOrderPermissions, order, user) -> None:
    """The token must describe this order, this user and the order's current status."""
    if (
        permissions.sales_order_id != _read(order, "id")
        or permissions.user_id != _read(user, "id")
        or permissions.sale_status != _order_status(order)
    ):
        raise AppException(
            409,
            "Sales order changed since permissions were computed, reload and retry",
            ErrorCode.PERMISSIONS_STALE,
        )


def require_action(permissions: SalesOrderPermissions, action: str) -> None:
    if not is_action_available(action, permissions):
        raise AppException(
            403,
            f"You don't have permission to perform '{action}' on this sales order",
            ErrorCode.PERMISSION_DENIED,
        )


def require_editable(permissions: SalesOrderPermissions, fields) -> None:
    blocked = sorted(f for f in fields if not is_field_editable(f, permissions))
    if blocked:
        raise AppException(
            403,
            f"You don't have permission to update these fields: {', '.join(blocked)}",
            ErrorCode.PERMISSION_DENIED,
            details={"fields": blocked},
        )
