from pydantic import BaseModel
from typing import List, Optional
from decimal import Decimal
from datetime import datetime

# =====================================================
# REQUESTS
# =====================================================

class QuotationStatusUpdate(BaseModel):
    # plain strings: legacy spellings ("win", "sent") are normalized by the service
    status: str
    stage: str


# =====================================================
# RESPONSES
# =====================================================

class QuotationItemOut(BaseModel):
    id: int
    product_id: Optional[int]
    product_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class QuotationOut(BaseModel):
    id: int
    quotation_no: str
    customer_id: int
    lead_id: Optional[int]
    user_id: Optional[int]

    status: str
    stage: str

    total: Decimal
    shipping: Decimal
    discount: Decimal
    tax: Decimal
    grand_total: Decimal

    note: Optional[str]

    created_at: datetime
    updated_at: Optional[datetime]

    items: List[QuotationItemOut]


class QuotationListItem(BaseModel):
    id: int
    quotation_no: str
    customer_id: int
    user_id: Optional[int]
    status: str
    stage: str
    grand_total: Decimal
    created_at: datetime


class QuotationListData(BaseModel):
    total: int
    items: List[QuotationListItem]
