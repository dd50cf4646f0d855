import uuid
from sqlalchemy import Column, String, Numeric, DateTime, Uuid, UniqueConstraint, func
from sqlalchemy.orm import relationship
from shared.core.database import Base


class Property(Base):
    __tablename__ = "properties"
    __table_args__ = (UniqueConstraint('tenant_id', 'code'),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, nullable=False, index=True)
    name = Column(String(128), nullable=False)
    code = Column(String(16), nullable=False)   # used in folio numbers
    logo_url = Column(String(512))
    address = Column(String(256))
    phone = Column(String(32))
    email = Column(String(128))
    currency = Column(String(8), default="BDT")
    service_charge_rate = Column(Numeric(5, 2), default=0)  # percent
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    room_types = relationship("RoomType", back_populates="hotel_property")
