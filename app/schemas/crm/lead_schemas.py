from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from app.models.enums.lead_status import OpportunityStatus


class OpportunityStatusUpdate(BaseModel):
    status: OpportunityStatus


class ConvertLeadRequest(BaseModel):
    # when omitted the customer is matched or created from the lead
    customer_id: Optional[int] = Field(None, gt=0)


class LeadOut(BaseModel):
    id: int
    reference_no: Optional[str]
    lead_name: str
    contact: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    company: Optional[str]
    product_interest: Optional[str]
    source: Optional[str]
    note: Optional[str]
    status: Optional[str]
    id_user: Optional[int]
    assigned_to: Optional[int]
    created_at: datetime
    updated_at: Optional[datetime]


class LeadListData(BaseModel):
    total: int
    items: List[LeadOut]
