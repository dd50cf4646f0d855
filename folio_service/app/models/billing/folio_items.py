import uuid
from sqlalchemy import Boolean, Column, String, Text, Date, Numeric, Integer, DateTime, ForeignKey, JSON, Uuid, func
from sqlalchemy.orm import relationship
from shared.core.database import Base


class FolioItem(Base):
    __tablename__ = "folio_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, nullable=False, index=True)
    folio_id = Column(Uuid, ForeignKey("folios.id"), nullable=False)
    item_type = Column(String(32), nullable=False)
    description = Column(Text, nullable=False)
    quantity = Column(Numeric(10, 2), default=1, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    tax_amount = Column(Numeric(12, 2), default=0, nullable=False)
    tax_breakdown = Column(JSON)   # {code: {name, rate, amount, is_compound}}
    service_charge = Column(Numeric(12, 2), default=0, nullable=False)
    service_date = Column(Date, nullable=False)
    is_posted = Column(Boolean, default=True, nullable=False)
    posted_by = Column(Uuid)

    voided = Column(Boolean, default=False, nullable=False)
    void_reason = Column(Text)
    voided_by = Column(Uuid)
    voided_at = Column(DateTime(timezone=True))

    version_id = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __mapper_args__ = {"version_id_col": version_id}

    folio = relationship("Folio", back_populates="items")
