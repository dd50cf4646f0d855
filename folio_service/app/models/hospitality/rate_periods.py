import uuid
from sqlalchemy import Boolean, Column, String, Date, Numeric, Integer, ForeignKey, JSON, DateTime, Uuid, func
from sqlalchemy.orm import relationship
from shared.core.database import Base


class RatePeriod(Base):
    __tablename__ = "rate_periods"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, nullable=False, index=True)
    property_id = Column(Uuid, ForeignKey("properties.id"), nullable=False)
    room_type_id = Column(Uuid, ForeignKey("room_types.id"))  # NULL = all room types
    name = Column(String(128), nullable=False)
    # weekend|seasonal|event|last_minute|holiday
    rate_type = Column(String(16), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    # fixed|percentage|override
    adjustment_type = Column(String(16), nullable=False)
    start_date = Column(Date)
    end_date = Column(Date)
    days_of_week = Column(JSON)  # [0..6], 0 = Sunday
    priority = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    room_type = relationship("RoomType")
