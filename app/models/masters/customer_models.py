from sqlalchemy import Column, Integer, String, Boolean, Index
from app.core.db import Base
from app.models.base.mixins import TimestampMixin, SoftDeleteMixin, AuditMixin


class Customer(Base, TimestampMixin, SoftDeleteMixin, AuditMixin):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True)

    name = Column(String(255), nullable=False, index=True)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(30), nullable=True)
    type = Column(String(50), nullable=True)
    note = Column(String, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (Index("ix_customer_active", "is_active"),)

    def __repr__(self):
        return f"<Customer id={self.id} name={self.name} active={self.is_active}>"
