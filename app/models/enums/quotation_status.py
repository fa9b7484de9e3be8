# app/models/enums/quotation_status.py
import enum


class QuotationStatus(str, enum.Enum):
    draft = "sq_draft"
    review = "sq_review"
    approved = "sq_approved"
    sent = "sq_sent"
    revised = "sq_revised"
    lost = "sq_lost"
    win = "sq_win"
    rejected = "sq_rejected"
    cancelled = "sq_cancelled"
    converted = "sq_converted"


class QuotationStage(str, enum.Enum):
    draft = "draft"
    review = "review"
    approved = "approved"
    sent = "sent"
    negotiation = "negotiation"
    closed = "closed"
