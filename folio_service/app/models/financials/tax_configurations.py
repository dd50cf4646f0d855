import uuid
from sqlalchemy import Boolean, Column, String, Date, Numeric, Integer, ForeignKey, JSON, DateTime, Uuid, func
from sqlalchemy.orm import relationship
from shared.core.database import Base


class TaxConfiguration(Base):
    __tablename__ = "tax_configurations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, nullable=False, index=True)
    property_id = Column(Uuid, ForeignKey("properties.id"), nullable=False)
    name = Column(String(64), nullable=False)
    # e.g., VAT, SC, CITY_TAX
    code = Column(String(32), nullable=False)
    rate = Column(Numeric(5, 2), nullable=False)  # percent
    is_compound = Column(Boolean, default=False, nullable=False)
    applies_to = Column(JSON, nullable=False, default=lambda: ["all"])  # room|food|service|other|all
    is_inclusive = Column(Boolean, default=False, nullable=False)
    calculation_order = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    exemptions = relationship(
        "TaxExemption", back_populates="tax_configuration", cascade="all, delete-orphan")


class TaxExemption(Base):
    __tablename__ = "tax_exemptions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, nullable=False, index=True)
    tax_configuration_id = Column(Uuid, ForeignKey(
        "tax_configurations.id", ondelete="CASCADE"), nullable=False)
    # corporate_account|guest
    entity_type = Column(String(32), nullable=False)
    entity_id = Column(Uuid, nullable=False)
    # full|partial
    exemption_type = Column(String(16), nullable=False)
    exemption_rate = Column(Numeric(5, 2))  # percent of the tax waived (partial only)
    valid_from = Column(Date)
    valid_until = Column(Date)
    notes = Column(String(256))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    tax_configuration = relationship("TaxConfiguration", back_populates="exemptions")
