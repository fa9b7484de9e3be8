from decimal import Decimal

from sqlalchemy import Column, Integer, String, ForeignKey, Enum, Numeric, CheckConstraint
from sqlalchemy.orm import relationship

from app.core.db import Base
from app.models.base.mixins import TimestampMixin, SoftDeleteMixin, AuditMixin
from app.models.enums.purchase_order_status import PurchaseOrderStatus


class PurchaseOrder(Base, TimestampMixin, SoftDeleteMixin, AuditMixin):
    __tablename__ = "purchase_orders"

    id = Column(Integer, primary_key=True)
    po_no = Column(String(50), nullable=False, unique=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales_orders.id", ondelete="SET NULL"), nullable=True, index=True)
    supplier_id = Column(Integer, nullable=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    status = Column(Enum(PurchaseOrderStatus), nullable=False, default=PurchaseOrderStatus.DRAFT)
    total = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    note = Column(String, nullable=True)

    items = relationship(
        "PurchaseOrderItem",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PurchaseOrderItem.id",
    )

    def __repr__(self):
        return f"<PurchaseOrder {self.po_no} sale_id={self.sale_id} status={self.status}>"


class PurchaseOrderItem(Base, TimestampMixin):
    __tablename__ = "purchase_order_items"

    id = Column(Integer, primary_key=True)
    purchase_order_id = Column(Integer, ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True, index=True)
    product_name = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    line_total = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))

    purchase_order = relationship("PurchaseOrder", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_poi_quantity"),
    )

    def __repr__(self):
        return f"<PurchaseOrderItem id={self.id} product_id={self.product_id} qty={self.quantity}>"
