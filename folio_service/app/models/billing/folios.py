import uuid
from sqlalchemy import Column, String, Numeric, Integer, DateTime, ForeignKey, Uuid, UniqueConstraint, func
from sqlalchemy.orm import relationship
from shared.core.database import Base


class Folio(Base):
    __tablename__ = "folios"
    __table_args__ = (UniqueConstraint('property_id', 'folio_number'),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, nullable=False, index=True)
    property_id = Column(Uuid, ForeignKey("properties.id"), nullable=False)
    guest_id = Column(Uuid, ForeignKey("guests.id"))
    reservation_id = Column(Uuid, ForeignKey("reservations.id"))
    folio_number = Column(String(64), nullable=False)
    status = Column(String(16), default="open", nullable=False)  # open|closed

    subtotal = Column(Numeric(12, 2), default=0, nullable=False)
    tax_amount = Column(Numeric(12, 2), default=0, nullable=False)
    service_charge = Column(Numeric(12, 2), default=0, nullable=False)
    total_amount = Column(Numeric(12, 2), default=0, nullable=False)
    paid_amount = Column(Numeric(12, 2), default=0, nullable=False)
    balance = Column(Numeric(12, 2), default=0, nullable=False)

    closed_at = Column(DateTime(timezone=True))
    closed_by = Column(Uuid)
    version_id = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    __mapper_args__ = {"version_id_col": version_id}

    hotel_property = relationship("Property")
    guest = relationship("Guest", back_populates="folios")
    reservation = relationship("Reservation", back_populates="folios")
    items = relationship(
        "FolioItem", back_populates="folio", order_by="FolioItem.created_at")
    payments = relationship(
        "Payment", back_populates="folio", order_by="Payment.created_at")

    @property
    def guest_name(self):
        return self.guest.full_name if self.guest else None

    @property
    def confirmation_number(self):
        return self.reservation.confirmation_number if self.reservation else None
