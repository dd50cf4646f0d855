from datetime import date as date_type, datetime
from decimal import Decimal
from uuid import UUID
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from shared.core.schemas import CommonQueryParams
from ...enum.billing_enum import AdjustmentType, FolioItemType, FolioStatus, PaymentMethod

# Folio Items


class FolioItemOut(BaseModel):
    id: UUID
    folio_id: UUID
    item_type: FolioItemType
    description: str
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal
    tax_amount: Decimal
    tax_breakdown: Optional[Dict[str, Any]] = None
    service_charge: Decimal
    service_date: date_type
    is_posted: bool
    posted_by: Optional[UUID] = None
    voided: bool
    void_reason: Optional[str] = None
    voided_by: Optional[UUID] = None
    voided_at: Optional[datetime] = None
    version_id: int
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

# Payments


class PaymentOut(BaseModel):
    id: UUID
    folio_id: UUID
    amount: Decimal
    payment_method: PaymentMethod
    reference_number: Optional[str] = None
    corporate_account_id: Optional[UUID] = None
    notes: Optional[str] = None
    received_by: Optional[UUID] = None
    voided: bool
    void_reason: Optional[str] = None
    voided_by: Optional[UUID] = None
    voided_at: Optional[datetime] = None
    version_id: int
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RecordedPaymentOut(PaymentOut):
    credit_limit_exceeded: bool = False

# Folios


class FolioSummaryOut(BaseModel):
    id: UUID
    folio_number: str
    guest_id: Optional[UUID] = None
    guest_name: Optional[str] = None
    reservation_id: Optional[UUID] = None
    confirmation_number: Optional[str] = None
    status: FolioStatus
    subtotal: Decimal
    tax_amount: Decimal
    service_charge: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    balance: Decimal
    closed_at: Optional[datetime] = None
    closed_by: Optional[UUID] = None
    version_id: int
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class FolioOut(FolioSummaryOut):
    items: List[FolioItemOut] = []
    payments: List[PaymentOut] = []


class FolioSplitOut(BaseModel):
    source: FolioOut
    new_folio: FolioOut


class FolioTransferOut(BaseModel):
    source: FolioOut
    target: FolioOut

# API Responses & Requests


class FolioRequest(CommonQueryParams):
    status: Optional[FolioStatus] = None
    guest_id: Optional[UUID] = None


class FolioListResponse(BaseModel):
    folios: List[FolioSummaryOut]
    total: int


class FolioStats(BaseModel):
    total_open: int
    total_closed: int
    total_balance: Decimal
    today_revenue: Decimal


class OpenFolioRequest(BaseModel):
    guest_id: UUID
    reservation_id: Optional[UUID] = None


class AddChargeRequest(BaseModel):
    item_type: FolioItemType
    description: str
    quantity: Decimal = Field(default=Decimal("1"), gt=0)
    unit_price: Decimal
    service_date: Optional[date_type] = None
    expected_version: Optional[int] = None


class AddAdjustmentRequest(BaseModel):
    adjustment_type: AdjustmentType
    amount: Decimal
    reason: str
    expected_version: Optional[int] = None


class VoidRequest(BaseModel):
    reason: str
    expected_version: Optional[int] = None


class RecordPaymentRequest(BaseModel):
    amount: Decimal
    payment_method: PaymentMethod = PaymentMethod.cash
    reference_number: Optional[str] = None
    corporate_account_id: Optional[UUID] = None
    notes: Optional[str] = None
    expected_version: Optional[int] = None


class BulkPaymentRequest(BaseModel):
    folio_ids: List[UUID]
    amount: Decimal
    payment_method: PaymentMethod = PaymentMethod.cash
    reference_number: Optional[str] = None
    notes: Optional[str] = None


class BulkPaymentOut(BaseModel):
    payments: List[PaymentOut]
    applied_amount: Decimal
    unapplied_amount: Decimal


class TransferChargeRequest(BaseModel):
    item_id: UUID
    target_folio_id: UUID
    expected_version: Optional[int] = None
    target_expected_version: Optional[int] = None


class SplitFolioRequest(BaseModel):
    item_ids: List[UUID]
    expected_version: Optional[int] = None


class FolioVersionRequest(BaseModel):
    expected_version: Optional[int] = None


class CheckInRequest(BaseModel):
    reservation_id: UUID


class PostRoomChargeRequest(BaseModel):
    service_date: date_type


class NightAuditRequest(BaseModel):
    business_date: date_type


class NightAuditOut(BaseModel):
    business_date: date_type
    charges_posted: int
    revenue: Decimal
