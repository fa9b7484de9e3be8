from sqlalchemy import Column, Integer, String
from app.core.db import Base


class DocumentSequence(Base):
    """Per-prefix counter backing SQ / SO / PO numbers."""

    __tablename__ = "document_sequences"

    prefix = Column(String(20), primary_key=True)
    last_value = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<DocumentSequence {self.prefix}={self.last_value}>"
