# app/models/enums/sales_order_status.py
import enum


class SaleStatus(str, enum.Enum):
    NEW = "NEW"
    PR = "PR"                  # purchase request
    PO = "PO"                  # purchase order
    SR = "SR"                  # stock reservation
    FAR = "FAR"                # finance approval request
    DR = "DR"                  # delivery request
    DELIVERY = "DELIVERY"
    DELIVERED = "DELIVERED"
    RECEIVED = "RECEIVED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class LegacySalesOrderStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, enum.Enum):
    UNPAID = "UNPAID"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


class SalesOrderItemStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    PARTIAL_DELIVERED = "PARTIAL_DELIVERED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class ReopenEventType(str, enum.Enum):
    REQUEST = "REQUEST"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
