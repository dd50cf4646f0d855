import uuid
from sqlalchemy import Column, String, Date, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from shared.core.database import Base


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, nullable=False, index=True)
    property_id = Column(Uuid, ForeignKey("properties.id"), nullable=False)
    guest_id = Column(Uuid, ForeignKey("guests.id"), nullable=False)
    room_type_id = Column(Uuid, ForeignKey("room_types.id"))
    confirmation_number = Column(String(32), nullable=False)
    check_in_date = Column(Date, nullable=False)
    check_out_date = Column(Date, nullable=False)
    # confirmed|checked_in|checked_out|cancelled|no_show
    status = Column(String(16), default="confirmed")

    guest = relationship("Guest")
    room_type = relationship("RoomType")
    folios = relationship("Folio", back_populates="reservation")
