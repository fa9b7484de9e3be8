from decimal import Decimal

from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, Index, CheckConstraint
from sqlalchemy.orm import relationship

from app.core.db import Base
from app.models.base.mixins import TimestampMixin, SoftDeleteMixin, AuditMixin
from app.models.enums.quotation_status import QuotationStatus, QuotationStage


class Quotation(Base, TimestampMixin, SoftDeleteMixin, AuditMixin):
    __tablename__ = "quotations"

    id = Column(Integer, primary_key=True)
    quotation_no = Column(String(50), nullable=False, unique=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True)
    lead_id = Column(Integer, ForeignKey("leads.id", ondelete="SET NULL"), nullable=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    # stored as plain strings; legacy spellings are normalized at the service boundary
    status = Column(String(30), nullable=False, default=QuotationStatus.draft.value, index=True)
    stage = Column(String(30), nullable=False, default=QuotationStage.draft.value)

    total = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    shipping = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    discount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    tax = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    grand_total = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))

    note = Column(String, nullable=True)

    items = relationship("QuotationItem", back_populates="quotation", cascade="all, delete-orphan", lazy="selectin")

    __table_args__ = (
        Index("ix_quotation_customer_status", "customer_id", "status"),
        CheckConstraint("total >= 0 AND grand_total >= 0", name="ck_quotation_amounts_non_negative"),
    )

    def __repr__(self):
        return f"<Quotation {self.quotation_no} status={self.status} stage={self.stage}>"


class QuotationItem(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "quotation_items"

    id = Column(Integer, primary_key=True)
    quotation_id = Column(Integer, ForeignKey("quotations.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=True, index=True)
    product_name = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(14, 2), nullable=False)
    line_total = Column(Numeric(14, 2), nullable=False)

    quotation = relationship("Quotation", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_quotation_item_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="ck_quotation_item_price_non_negative"),
    )

    def __repr__(self):
        return f"<QuotationItem id={self.id} product_id={self.product_id} qty={self.quantity}>"
