import uuid
from sqlalchemy import Column, String, Numeric, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from shared.core.database import Base


class RoomType(Base):
    __tablename__ = "room_types"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, nullable=False, index=True)
    property_id = Column(Uuid, ForeignKey("properties.id"), nullable=False)
    name = Column(String(64), nullable=False)
    base_rate = Column(Numeric(12, 2), nullable=False, default=0)

    hotel_property = relationship("Property", back_populates="room_types")
