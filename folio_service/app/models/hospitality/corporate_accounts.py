import uuid
from sqlalchemy import Boolean, Column, String, Numeric, Uuid
from sqlalchemy.orm import relationship
from shared.core.database import Base


class CorporateAccount(Base):
    __tablename__ = "corporate_accounts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, nullable=False, index=True)
    company_name = Column(String(128), nullable=False)
    contact_email = Column(String(128))
    credit_limit = Column(Numeric(12, 2), default=0)  # 0 = unlimited
    current_balance = Column(Numeric(12, 2), default=0)
    is_active = Column(Boolean, default=True)

    guests = relationship("Guest", back_populates="corporate_account")
