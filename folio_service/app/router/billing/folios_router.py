from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, Response
from sqlalchemy.orm import Session

from shared.core.auth import validate_current_token
from shared.core.database import get_folio_db as get_db
from shared.core.schemas import TenantContext
from ...crud.billing import folio_ledger as ledger
from ...crud.billing import folio_workflow as workflow
from ...crud.billing import folios_crud as crud
from ...crud.billing.folio_invoice import generate_folio_invoice_pdf, render_folio_invoice_html
from ...schemas.billing.folios_schemas import (
    AddAdjustmentRequest, AddChargeRequest, BulkPaymentOut, BulkPaymentRequest,
    CheckInRequest, FolioItemOut, FolioListResponse, FolioOut, FolioRequest,
    FolioSplitOut, FolioStats, FolioTransferOut, FolioVersionRequest, NightAuditOut,
    NightAuditRequest, OpenFolioRequest, PaymentOut, PostRoomChargeRequest,
    RecordedPaymentOut, RecordPaymentRequest, SplitFolioRequest, TransferChargeRequest,
    VoidRequest
)

router = APIRouter(
    prefix="/api/folios",
    tags=["folios"],
    dependencies=[Depends(validate_current_token)]
)


@router.get("/all", response_model=FolioListResponse)
def get_folios(
    params: FolioRequest = Depends(),
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    """Folios of the current property, newest first."""
    return crud.get_folios(db, current_user, params)


@router.get("/stats", response_model=FolioStats)
def get_folio_stats(
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    return crud.get_folio_stats(db, current_user)


@router.get("/by-reservation/{reservation_id:uuid}", response_model=Optional[FolioOut])
def get_folio_by_reservation(
    reservation_id: UUID,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    return crud.get_folio_by_reservation(db, current_user, reservation_id)


@router.get("/{folio_id:uuid}", response_model=FolioOut)
def get_folio_detail(
    folio_id: UUID,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    return crud.get_folio(db, current_user, folio_id)


@router.post("/open", response_model=FolioOut)
def open_folio(
    payload: OpenFolioRequest,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    return ledger.open_folio(db, current_user, payload.guest_id, payload.reservation_id)


@router.post("/check-in", response_model=FolioOut)
def check_in(
    payload: CheckInRequest,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    """Marks the reservation checked in and opens its folio."""
    return workflow.check_in(db, current_user, payload.reservation_id)


# ----------------- Charges -----------------
@router.post("/{folio_id:uuid}/charges", response_model=FolioItemOut)
def add_charge(
    folio_id: UUID,
    payload: AddChargeRequest,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    return workflow.post_charge(db, current_user, folio_id, payload)


@router.post("/{folio_id:uuid}/room-charge", response_model=FolioItemOut)
def post_room_charge(
    folio_id: UUID,
    payload: PostRoomChargeRequest,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    return workflow.post_room_night_charge(db, current_user, folio_id, payload.service_date)


@router.post("/{folio_id:uuid}/adjustments", response_model=FolioItemOut)
def add_adjustment(
    folio_id: UUID,
    payload: AddAdjustmentRequest,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    return workflow.post_adjustment(db, current_user, folio_id, payload)


@router.post("/items/{item_id:uuid}/void", response_model=FolioItemOut)
def void_item(
    item_id: UUID,
    payload: VoidRequest,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    return workflow.void_charge(db, current_user, item_id, payload.reason, payload.expected_version)


@router.post("/transfer", response_model=FolioTransferOut)
def transfer_item(
    payload: TransferChargeRequest,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    source, target = workflow.transfer_charge(
        db, current_user, payload.item_id, payload.target_folio_id,
        payload.expected_version, payload.target_expected_version)
    return FolioTransferOut(source=FolioOut.model_validate(source), target=FolioOut.model_validate(target))


# ----------------- Payments -----------------
@router.post("/{folio_id:uuid}/payments", response_model=RecordedPaymentOut)
def record_payment(
    folio_id: UUID,
    payload: RecordPaymentRequest,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    payment, credit_limit_exceeded = workflow.take_payment(db, current_user, folio_id, payload)
    return RecordedPaymentOut(
        **PaymentOut.model_validate(payment).model_dump(),
        credit_limit_exceeded=credit_limit_exceeded
    )


@router.post("/payments/bulk", response_model=BulkPaymentOut)
def record_bulk_payment(
    payload: BulkPaymentRequest,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    return workflow.take_bulk_payment(db, current_user, payload)


@router.post("/payments/{payment_id:uuid}/void", response_model=PaymentOut)
def void_payment(
    payment_id: UUID,
    payload: VoidRequest,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    return workflow.void_payment(db, current_user, payment_id, payload.reason, payload.expected_version)


# ----------------- Split / Close / Reopen -----------------
@router.post("/{folio_id:uuid}/split", response_model=FolioSplitOut)
def split_folio(
    folio_id: UUID,
    payload: SplitFolioRequest,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    source, new_folio = workflow.split_folio(
        db, current_user, folio_id, payload.item_ids, payload.expected_version)
    return FolioSplitOut(source=FolioOut.model_validate(source), new_folio=FolioOut.model_validate(new_folio))


@router.post("/{folio_id:uuid}/close", response_model=FolioOut)
def close_folio(
    folio_id: UUID,
    payload: FolioVersionRequest = FolioVersionRequest(),
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    return workflow.close_folio(db, current_user, folio_id, payload.expected_version)


@router.post("/{folio_id:uuid}/reopen", response_model=FolioOut)
def reopen_folio(
    folio_id: UUID,
    payload: FolioVersionRequest = FolioVersionRequest(),
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    return workflow.reopen_folio(db, current_user, folio_id, payload.expected_version)


@router.post("/night-audit", response_model=NightAuditOut)
def night_audit(
    payload: NightAuditRequest,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    return workflow.run_night_audit(db, current_user, payload.business_date)


# ----------------- Invoice -----------------
@router.get("/{folio_id:uuid}/invoice", response_class=HTMLResponse)
def folio_invoice_html(
    folio_id: UUID,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    folio = crud.get_folio(db, current_user, folio_id)
    return HTMLResponse(content=render_folio_invoice_html(folio))


@router.get("/{folio_id:uuid}/invoice.pdf")
def folio_invoice_pdf(
    folio_id: UUID,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    folio = crud.get_folio(db, current_user, folio_id)
    return Response(
        content=generate_folio_invoice_pdf(folio),
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{folio.folio_number}.pdf"'}
    )
