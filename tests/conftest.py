import uuid
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shared.core.auth import validate_current_token
from shared.core.database import Base, get_folio_db
from shared.core.schemas import TenantContext
from folio_service.app import models  # noqa: F401
from folio_service.app.models.financials.tax_configurations import TaxConfiguration
from folio_service.app.models.hospitality.corporate_accounts import CorporateAccount
from folio_service.app.models.hospitality.guests import Guest
from folio_service.app.models.hospitality.properties import Property
from folio_service.app.models.hospitality.reservations import Reservation
from folio_service.app.models.hospitality.room_types import RoomType


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def hotel(db):
    tenant_id = uuid.uuid4()
    hotel_property = Property(
        tenant_id=tenant_id,
        name="Harbour View Hotel",
        code="HVH",
        address="12 Marine Drive",
        phone="+880-1700-000000",
        email="frontdesk@harbourview.test",
        currency="BDT",
        service_charge_rate=Decimal("0"),
    )
    db.add(hotel_property)
    db.flush()

    standard = RoomType(tenant_id=tenant_id, property_id=hotel_property.id,
                        name="Standard", base_rate=Decimal("2000.00"))
    deluxe = RoomType(tenant_id=tenant_id, property_id=hotel_property.id,
                      name="Deluxe", base_rate=Decimal("3000.00"))
    account = CorporateAccount(tenant_id=tenant_id, company_name="Acme Travel Ltd",
                               contact_email="billing@acme.test",
                               credit_limit=Decimal("5000.00"), current_balance=Decimal("0.00"),
                               is_active=True)
    db.add_all([standard, deluxe, account])
    db.flush()

    guest = Guest(tenant_id=tenant_id, first_name="Nadia", last_name="Rahman",
                  email="nadia@example.test", phone="+880-1711-111111")
    corporate_guest = Guest(tenant_id=tenant_id, first_name="Tomas", last_name="Berg",
                            email="tomas@acme.test", corporate_account_id=account.id)
    db.add_all([guest, corporate_guest])
    db.flush()

    reservation = Reservation(
        tenant_id=tenant_id,
        property_id=hotel_property.id,
        guest_id=guest.id,
        room_type_id=standard.id,
        confirmation_number="RES-00001",
        check_in_date=date(2024, 5, 31),
        check_out_date=date(2024, 6, 3),
        status="confirmed",
    )
    db.add(reservation)
    db.commit()

    return SimpleNamespace(
        tenant_id=tenant_id,
        property_id=hotel_property.id,
        property=hotel_property,
        standard=standard,
        deluxe=deluxe,
        account=account,
        guest=guest,
        corporate_guest=corporate_guest,
        reservation=reservation,
    )


@pytest.fixture
def ctx(hotel):
    return TenantContext(
        tenant_id=hotel.tenant_id,
        property_id=hotel.property_id,
        actor_id=uuid.uuid4(),
        name="Front Desk",
    )


@pytest.fixture
def room_taxes(db, hotel):
    """VAT 10% on everything, city levy 5% compounding on room charges."""
    vat = TaxConfiguration(tenant_id=hotel.tenant_id, property_id=hotel.property_id,
                           name="VAT", code="VAT", rate=Decimal("10.00"),
                           is_compound=False, applies_to=["all"], calculation_order=1)
    city = TaxConfiguration(tenant_id=hotel.tenant_id, property_id=hotel.property_id,
                            name="City Levy", code="CITY", rate=Decimal("5.00"),
                            is_compound=True, applies_to=["room"], calculation_order=2)
    db.add_all([vat, city])
    db.commit()
    return SimpleNamespace(vat=vat, city=city)


@pytest.fixture
def client(session_factory, ctx):
    from folio_service.app.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_folio_db] = override_get_db
    app.dependency_overrides[validate_current_token] = lambda: ctx
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
