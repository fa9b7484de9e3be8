from sqlalchemy import Column, Integer, String, Numeric
from app.core.db import Base
from app.models.base.mixins import TimestampMixin, SoftDeleteMixin, AuditMixin


class Product(Base, TimestampMixin, SoftDeleteMixin, AuditMixin):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    product_code = Column(String(50), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False, index=True, unique=True)
    unit = Column(String(20), nullable=True)
    description = Column(String(500), nullable=True)
    price = Column(Numeric(14, 2), nullable=True)
    stock = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<Product id={self.id} code={self.product_code} name={self.name}>"
