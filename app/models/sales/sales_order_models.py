# app/models/sales/sales_order_models.py

from decimal import Decimal

from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    Enum,
    Index,
    Numeric,
    Boolean,
    CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import expression

from app.core.db import Base
from app.models.base.mixins import TimestampMixin, SoftDeleteMixin, AuditMixin
from app.models.enums.sales_order_status import (
    SaleStatus,
    LegacySalesOrderStatus,
    PaymentStatus,
    SalesOrderItemStatus,
    ReopenEventType,
)


class SalesOrder(Base, TimestampMixin, SoftDeleteMixin, AuditMixin):
    __tablename__ = "sales_orders"

    id = Column(Integer, primary_key=True)
    sale_no = Column(String(50), nullable=False, unique=True, index=True)

    quotation_id = Column(Integer, ForeignKey("quotations.id"), nullable=True, unique=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    payment_term_id = Column(Integer, nullable=True)
    file_po_customer = Column(String(500), nullable=True)

    sale_status = Column(Enum(SaleStatus), nullable=False, default=SaleStatus.NEW, index=True)
    # derived from sale_status, see LEGACY_STATUS_BY_SALE_STATUS
    status = Column(Enum(LegacySalesOrderStatus), nullable=False, default=LegacySalesOrderStatus.DRAFT)
    payment_status = Column(Enum(PaymentStatus), nullable=False, default=PaymentStatus.UNPAID)

    total = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    shipping = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    discount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    tax = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    grand_total = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))

    note = Column(String, nullable=True)
    # rows written before the reopen event log; only these read reopen state from note markers
    legacy_reopen_notes = Column(
        Boolean,
        nullable=False,
        default=False,
        server_default=expression.true(),
    )

    items = relationship(
        "SalesOrderItem",
        back_populates="sales_order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="SalesOrderItem.id",
    )
    reopen_events = relationship(
        "SalesOrderReopenEvent",
        back_populates="sales_order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="SalesOrderReopenEvent.id",
    )

    __table_args__ = (
        Index("ix_sales_order_user_status", "user_id", "sale_status"),
    )

    def __repr__(self):
        return (
            f"<SalesOrder id={self.id} "
            f"sale_no={self.sale_no} "
            f"sale_status={self.sale_status}>"
        )


class SalesOrderItem(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "sales_order_items"

    id = Column(Integer, primary_key=True)

    sales_order_id = Column(Integer, ForeignKey("sales_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True, index=True)
    product_name = Column(String, nullable=False)

    quantity = Column(Integer, nullable=False)
    delivered_quantity = Column(Integer, nullable=False, default=0)
    unit_price = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    line_total = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))

    status = Column(Enum(SalesOrderItemStatus), nullable=False, default=SalesOrderItemStatus.ACTIVE)

    sales_order = relationship("SalesOrder", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_soi_quantity"),
        CheckConstraint("delivered_quantity >= 0", name="ck_soi_delivered_qty"),
        Index("ix_so_item_sales_order_product", "sales_order_id", "product_id"),
    )

    def __repr__(self):
        return (
            f"<SalesOrderItem id={self.id} "
            f"product_id={self.product_id} "
            f"qty={self.quantity} "
            f"status={self.status}>"
        )


class SalesOrderReopenEvent(Base, TimestampMixin):
    """Append-only reopen negotiation log. Never updated, never deleted."""

    __tablename__ = "sales_order_reopen_events"

    id = Column(Integer, primary_key=True)
    sales_order_id = Column(Integer, ForeignKey("sales_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    event_type = Column(Enum(ReopenEventType), nullable=False)
    actor_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reason = Column(String, nullable=True)

    sales_order = relationship("SalesOrder", back_populates="reopen_events")

    def __repr__(self):
        return f"<SalesOrderReopenEvent order={self.sales_order_id} type={self.event_type}>"
