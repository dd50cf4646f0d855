from enum import Enum
from typing import Optional

from .billing_enum import FolioItemType


class TaxAppliesTo(str, Enum):

    room = "room"
    food = "food"
    service = "service"
    other = "other"
    all = "all"


class TaxExemptionType(str, Enum):

    full = "full"
    partial = "partial"


class TaxExemptionEntityType(str, Enum):

    corporate_account = "corporate_account"
    guest = "guest"


CHARGE_TAX_CATEGORY = {
    FolioItemType.room_charge: TaxAppliesTo.room,
    FolioItemType.food_beverage: TaxAppliesTo.food,
    FolioItemType.minibar: TaxAppliesTo.food,
    FolioItemType.laundry: TaxAppliesTo.service,
    FolioItemType.spa: TaxAppliesTo.service,
    FolioItemType.parking: TaxAppliesTo.service,
    FolioItemType.telephone: TaxAppliesTo.service,
    FolioItemType.internet: TaxAppliesTo.service,
    FolioItemType.miscellaneous: TaxAppliesTo.other,
}


def tax_category_for(item_type: FolioItemType) -> Optional[TaxAppliesTo]:
    # None means the item type is not taxable at all
    return CHARGE_TAX_CATEGORY.get(FolioItemType(item_type))
