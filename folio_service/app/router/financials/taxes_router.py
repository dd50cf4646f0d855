from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shared.core.auth import validate_current_token
from shared.core.database import get_folio_db as get_db
from shared.core.schemas import TenantContext
from shared.helpers.json_response_helper import success_response
from shared.utils.app_status_code import AppStatusCode
from ...crud.financials import tax_configurations_crud as crud
from ...crud.financials.tax_calculator import calculate_taxes_for_property
from ...schemas.financials.tax_schemas import (
    TaxCalculationRequest, TaxCalculationResponse, TaxConfigurationCreate,
    TaxConfigurationOut, TaxConfigurationUpdate, TaxExemptionCreate, TaxExemptionOut
)

router = APIRouter(
    prefix="/api/taxes",
    tags=["taxes"],
    dependencies=[Depends(validate_current_token)]
)


@router.get("/all", response_model=List[TaxConfigurationOut])
def get_tax_configurations(
    active_only: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    return crud.get_tax_configurations(db, current_user, active_only)


@router.post("/create", response_model=TaxConfigurationOut)
def create_tax_configuration(
    payload: TaxConfigurationCreate,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    return crud.create_tax_configuration(db, current_user, payload)


@router.put("/update", response_model=TaxConfigurationOut)
def update_tax_configuration(
    payload: TaxConfigurationUpdate,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    return crud.update_tax_configuration(db, current_user, payload)


@router.delete("/{tax_configuration_id:uuid}", response_model=TaxConfigurationOut)
def deactivate_tax_configuration(
    tax_configuration_id: UUID,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    return crud.deactivate_tax_configuration(db, current_user, tax_configuration_id)


@router.post("/calculate", response_model=TaxCalculationResponse)
def calculate_taxes(
    payload: TaxCalculationRequest,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    """Preview the taxes of an amount without posting anything."""
    result = calculate_taxes_for_property(
        db, current_user,
        amount=payload.amount,
        charge_type=payload.charge_type,
        corporate_account_id=payload.corporate_account_id,
        guest_id=payload.guest_id,
        on_date=payload.on_date
    )
    return TaxCalculationResponse(
        breakdown=result.breakdown,
        total_tax=result.total_tax,
        net_amount=result.net_amount
    )


# ----------------- Exemptions -----------------
@router.get("/exemptions", response_model=List[TaxExemptionOut])
def get_tax_exemptions(
    entity_id: Optional[UUID] = Query(None),
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    return crud.get_tax_exemptions(db, current_user, entity_id)


@router.post("/exemptions", response_model=TaxExemptionOut)
def create_tax_exemption(
    payload: TaxExemptionCreate,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    return crud.create_tax_exemption(db, current_user, payload)


@router.delete("/exemptions/{exemption_id:uuid}")
def delete_tax_exemption(
    exemption_id: UUID,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    crud.delete_tax_exemption(db, current_user, exemption_id)
    return success_response(None, "Tax exemption deleted", AppStatusCode.OPERATION_SUCCESSFUL)
