import uuid
from sqlalchemy import Boolean, Column, Date, Numeric, ForeignKey, DateTime, Uuid, UniqueConstraint, func
from sqlalchemy.orm import relationship
from shared.core.database import Base


class DailyRate(Base):
    __tablename__ = "daily_rates"
    __table_args__ = (UniqueConstraint(
        'property_id', 'room_type_id', 'date', name="uq_daily_rate_property_room_type_date"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, nullable=False, index=True)
    property_id = Column(Uuid, ForeignKey("properties.id"), nullable=False)
    room_type_id = Column(Uuid, ForeignKey("room_types.id"), nullable=False)
    date = Column(Date, nullable=False)
    calculated_rate = Column(Numeric(12, 2), nullable=False)
    rate_period_id = Column(Uuid, ForeignKey("rate_periods.id", ondelete="SET NULL"))
    is_manual_override = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    room_type = relationship("RoomType")
    rate_period = relationship("RatePeriod")
