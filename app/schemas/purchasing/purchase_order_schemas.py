from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal
from datetime import datetime

from app.models.enums.purchase_order_status import PurchaseOrderStatus


class PurchaseOrderItemIn(BaseModel):
    product_id: Optional[int] = None
    product_name: str
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(Decimal("0.00"), ge=0)


class PurchaseOrderCreate(BaseModel):
    supplier_id: Optional[int] = None
    note: Optional[str] = None
    # defaults to the sales order's active items
    items: Optional[List[PurchaseOrderItemIn]] = None


class PurchaseOrderItemOut(BaseModel):
    id: int
    product_id: Optional[int]
    product_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class PurchaseOrderOut(BaseModel):
    id: int
    po_no: str
    sale_id: Optional[int]
    supplier_id: Optional[int]
    user_id: Optional[int]
    status: PurchaseOrderStatus
    total: Decimal
    note: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime]
    items: List[PurchaseOrderItemOut]
