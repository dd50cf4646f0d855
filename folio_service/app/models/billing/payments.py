import uuid
from sqlalchemy import Boolean, Column, String, Text, Numeric, Integer, DateTime, ForeignKey, Uuid, func
from sqlalchemy.orm import relationship
from shared.core.database import Base


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, nullable=False, index=True)
    folio_id = Column(Uuid, ForeignKey("folios.id"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    # cash|credit_card|debit_card|bank_transfer|other
    payment_method = Column(String(24), nullable=False)
    reference_number = Column(String(64))
    corporate_account_id = Column(Uuid, ForeignKey("corporate_accounts.id"))
    notes = Column(Text)
    received_by = Column(Uuid)

    voided = Column(Boolean, default=False, nullable=False)
    void_reason = Column(Text)
    voided_by = Column(Uuid)
    voided_at = Column(DateTime(timezone=True))

    version_id = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __mapper_args__ = {"version_id_col": version_id}

    folio = relationship("Folio", back_populates="payments")
    corporate_account = relationship("CorporateAccount")
