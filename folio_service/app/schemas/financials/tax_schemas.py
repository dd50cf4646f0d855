from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from ...enum.financials_enum import TaxAppliesTo, TaxExemptionEntityType, TaxExemptionType


# ----------------- Tax Configuration -----------------
class TaxConfigurationBase(BaseModel):
    name: str
    code: str
    rate: Decimal = Field(ge=0, le=100)
    is_compound: bool = False
    applies_to: List[TaxAppliesTo] = [TaxAppliesTo.all]
    is_inclusive: bool = False
    is_active: bool = True
    calculation_order: int = 0

    model_config = {"from_attributes": True}


class TaxConfigurationCreate(TaxConfigurationBase):
    pass


class TaxConfigurationUpdate(BaseModel):
    id: UUID
    name: Optional[str] = None
    code: Optional[str] = None
    rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    is_compound: Optional[bool] = None
    applies_to: Optional[List[TaxAppliesTo]] = None
    is_inclusive: Optional[bool] = None
    is_active: Optional[bool] = None
    calculation_order: Optional[int] = None


class TaxConfigurationOut(TaxConfigurationBase):
    id: UUID
    property_id: UUID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ----------------- Tax Exemption -----------------
class TaxExemptionCreate(BaseModel):
    tax_configuration_id: UUID
    entity_type: TaxExemptionEntityType
    entity_id: UUID
    exemption_type: TaxExemptionType
    exemption_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    valid_from: Optional[date] = None
    valid_until: Optional[date] = None
    notes: Optional[str] = None


class TaxExemptionOut(TaxExemptionCreate):
    id: UUID
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ----------------- Calculation -----------------
class TaxCalculationRequest(BaseModel):
    amount: Decimal
    charge_type: TaxAppliesTo
    corporate_account_id: Optional[UUID] = None
    guest_id: Optional[UUID] = None
    on_date: Optional[date] = None


class TaxBreakdownLine(BaseModel):
    name: str
    rate: float
    amount: float
    is_compound: bool


class TaxCalculationResponse(BaseModel):
    breakdown: Dict[str, TaxBreakdownLine]
    total_tax: Decimal
    net_amount: Decimal
