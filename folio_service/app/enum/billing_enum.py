from enum import Enum


class FolioStatus(str, Enum):

    open = "open"
    closed = "closed"


class FolioItemType(str, Enum):

    room_charge = "room_charge"
    food_beverage = "food_beverage"
    laundry = "laundry"
    minibar = "minibar"
    spa = "spa"
    parking = "parking"
    telephone = "telephone"
    internet = "internet"
    miscellaneous = "miscellaneous"
    tax = "tax"
    service_charge = "service_charge"
    discount = "discount"
    deposit = "deposit"


class PaymentMethod(str, Enum):

    cash = "cash"
    credit_card = "credit_card"
    debit_card = "debit_card"
    bank_transfer = "bank_transfer"
    other = "other"


class AdjustmentType(str, Enum):

    discount = "discount"
    debit = "debit"


# Items that never attract tax or service charge
NON_REVENUE_ITEM_TYPES = frozenset({
    FolioItemType.tax,
    FolioItemType.service_charge,
    FolioItemType.discount,
    FolioItemType.deposit,
})
