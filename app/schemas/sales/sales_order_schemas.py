from pydantic import BaseModel, Field, model_validator
from typing import List, Optional
from decimal import Decimal
from datetime import datetime

from app.models.enums.sales_order_status import (
    SaleStatus,
    LegacySalesOrderStatus,
    PaymentStatus,
    SalesOrderItemStatus,
    ReopenEventType,
)

# =====================================================
# ITEM PAYLOADS
# =====================================================

class SalesOrderItemIn(BaseModel):
    product_id: Optional[int] = None
    product_name: Optional[str] = None
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(Decimal("0.00"), ge=0)

    @model_validator(mode="after")
    def _needs_product(self):
        if self.product_id is None and not self.product_name:
            raise ValueError("product_id or product_name is required")
        return self


# =====================================================
# REQUESTS
# =====================================================

class SalesOrderUpdate(BaseModel):
    """Only supplied fields are applied; each one must be editable for the caller."""

    note: Optional[str] = None
    quotation_id: Optional[int] = None
    customer_id: Optional[int] = None
    payment_term_id: Optional[int] = None
    file_po_customer: Optional[str] = None
    payment_status: Optional[PaymentStatus] = None
    items: Optional[List[SalesOrderItemIn]] = None


class ReopenRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


# =====================================================
# RESPONSES
# =====================================================

class SalesOrderItemOut(BaseModel):
    id: int
    product_id: Optional[int]
    product_name: str
    quantity: int
    delivered_quantity: int
    unit_price: Decimal
    line_total: Decimal
    status: SalesOrderItemStatus


class ReopenEventOut(BaseModel):
    id: int
    event_type: ReopenEventType
    actor_id: Optional[int]
    reason: Optional[str]
    created_at: datetime


class SalesOrderOut(BaseModel):
    id: int
    sale_no: str
    quotation_id: Optional[int]
    customer_id: int
    user_id: Optional[int]
    payment_term_id: Optional[int]
    file_po_customer: Optional[str]

    sale_status: SaleStatus
    status: LegacySalesOrderStatus
    payment_status: PaymentStatus

    total: Decimal
    shipping: Decimal
    discount: Decimal
    tax: Decimal
    grand_total: Decimal

    note: Optional[str]
    has_pending_reopen_request: bool

    created_at: datetime
    updated_at: Optional[datetime]

    items: List[SalesOrderItemOut]
    reopen_events: List[ReopenEventOut]


class SalesOrderListItem(BaseModel):
    id: int
    sale_no: str
    customer_id: int
    user_id: Optional[int]
    sale_status: SaleStatus
    payment_status: PaymentStatus
    grand_total: Decimal
    created_at: datetime


class SalesOrderListData(BaseModel):
    total: int
    items: List[SalesOrderListItem]


class SalesOrderPermissionsOut(BaseModel):
    sales_order_id: Optional[int]
    sale_status: Optional[SaleStatus]
    next_statuses: List[SaleStatus]
    editable_fields: List[str]
    available_actions: List[str]
    can_cancel: bool
    can_request_reopen: bool
    can_reopen: bool
    can_update_note: bool
    can_update_payment: bool
    can_create_purchase_order: bool
    can_approve_far: bool
