import uuid
from sqlalchemy import Column, String, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from shared.core.database import Base


class Guest(Base):
    __tablename__ = "guests"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, nullable=False, index=True)
    first_name = Column(String(64), nullable=False)
    last_name = Column(String(64), nullable=False)
    email = Column(String(128))
    phone = Column(String(32))
    address = Column(String(256))
    corporate_account_id = Column(Uuid, ForeignKey("corporate_accounts.id"))

    corporate_account = relationship("CorporateAccount", back_populates="guests")
    folios = relationship("Folio", back_populates="guest")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
