# app/models/enums/purchase_order_status.py
import enum


class PurchaseOrderStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    APPROVED = "APPROVED"
