from sqlalchemy import Column, Integer, String, ForeignKey, Index
from app.core.db import Base
from app.models.base.mixins import TimestampMixin, SoftDeleteMixin


class Lead(Base, TimestampMixin, SoftDeleteMixin):
    """A lead becomes an opportunity by status alone (prospecting / opp_lost / opp_sq)."""

    __tablename__ = "leads"

    id = Column(Integer, primary_key=True)
    reference_no = Column(String(50), nullable=True, unique=True)
    lead_name = Column(String(255), nullable=False)
    contact = Column(String(150), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)
    type = Column(String(50), nullable=True)
    company = Column(String(255), nullable=True)
    location = Column(String(255), nullable=True)
    product_interest = Column(String, nullable=True)
    source = Column(String(100), nullable=True)
    note = Column(String, nullable=True)

    id_user = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    assigned_to = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    status = Column(String(50), nullable=True, index=True)

    __table_args__ = (Index("ix_lead_owner_status", "id_user", "status"),)

    def __repr__(self):
        return f"<Lead id={self.id} name={self.lead_name} status={self.status}>"
