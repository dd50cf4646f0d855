import random
import uuid
from datetime import date, timedelta
from decimal import Decimal

from faker import Faker
from sqlalchemy.orm import Session

from shared.core.auth import create_access_token
from shared.core.database import Base, FolioSessionLocal, folio_engine
from folio_service.app import models  # noqa: F401
from folio_service.app.models.financials.tax_configurations import TaxConfiguration
from folio_service.app.models.hospitality.corporate_accounts import CorporateAccount
from folio_service.app.models.hospitality.guests import Guest
from folio_service.app.models.hospitality.properties import Property
from folio_service.app.models.hospitality.rate_periods import RatePeriod
from folio_service.app.models.hospitality.reservations import Reservation
from folio_service.app.models.hospitality.room_types import RoomType

# Create tables
Base.metadata.create_all(bind=folio_engine)

fake = Faker()

ROOM_TYPES = [("Standard", "3500.00"), ("Deluxe", "5500.00"), ("Suite", "9000.00")]


def seed_data():
    db: Session = FolioSessionLocal()
    try:
        tenant_id = uuid.uuid4()
        hotel_property = Property(
            tenant_id=tenant_id,
            name=f"{fake.last_name()} Grand Hotel",
            code="GRD",
            address=fake.address().replace("\n", ", "),
            phone=fake.phone_number(),
            email=fake.company_email(),
            currency="BDT",
            service_charge_rate=Decimal("10.00"),
        )
        db.add(hotel_property)
        db.flush()  # ensures hotel_property.id is available

        room_types = []
        for name, base_rate in ROOM_TYPES:
            room_type = RoomType(
                tenant_id=tenant_id,
                property_id=hotel_property.id,
                name=name,
                base_rate=Decimal(base_rate),
            )
            db.add(room_type)
            room_types.append(room_type)

        db.add_all([
            TaxConfiguration(
                tenant_id=tenant_id, property_id=hotel_property.id,
                name="VAT", code="VAT", rate=Decimal("15.00"),
                is_compound=False, applies_to=["all"], calculation_order=1,
            ),
            TaxConfiguration(
                tenant_id=tenant_id, property_id=hotel_property.id,
                name="City Levy", code="CITY", rate=Decimal("2.00"),
                is_compound=True, applies_to=["room"], calculation_order=2,
            ),
            RatePeriod(
                tenant_id=tenant_id, property_id=hotel_property.id,
                name="Weekend", rate_type="weekend", amount=Decimal("20"),
                adjustment_type="percentage", days_of_week=[5, 6], priority=10,
            ),
        ])

        account = CorporateAccount(
            tenant_id=tenant_id,
            company_name=fake.company(),
            contact_email=fake.company_email(),
            credit_limit=Decimal("200000.00"),
            current_balance=Decimal("0.00"),
        )
        db.add(account)
        db.flush()

        for index in range(1, 11):  # 10 guests with one reservation each
            guest = Guest(
                tenant_id=tenant_id,
                first_name=fake.first_name(),
                last_name=fake.last_name(),
                email=fake.email(),
                phone=fake.phone_number(),
                corporate_account_id=account.id if index % 4 == 0 else None,
            )
            db.add(guest)
            db.flush()

            check_in_date = date.today() + timedelta(days=random.randint(-2, 5))
            db.add(Reservation(
                tenant_id=tenant_id,
                property_id=hotel_property.id,
                guest_id=guest.id,
                room_type_id=random.choice(room_types).id,
                confirmation_number=f"RES-{index:05d}",
                check_in_date=check_in_date,
                check_out_date=check_in_date + timedelta(days=random.randint(1, 4)),
                status="confirmed",
            ))

        db.commit()

        token = create_access_token(tenant_id, hotel_property.id, uuid.uuid4(), "Front Desk")
        print("✅ Seed data inserted successfully!")
        print(f"Property: {hotel_property.name} ({hotel_property.id})")
        print(f"Bearer token: {token}")
    except Exception as e:
        db.rollback()
        print("❌ Error while seeding:", e)
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_data()
