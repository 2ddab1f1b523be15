"""
Demo data for the CLI — a small tea shop.

Rows are written in the admin console's loose format on purpose: numbers as
strings, blank strings for "not set".
"""

from tally.store import MemoryStore

PRODUCTS = [
    {"id": "TEA", "name": "Green tea 250g", "price": "12.50", "weight_grams": "250"},
    {"id": "MUG", "name": "Stoneware mug", "price": "8.00", "weight_grams": "400"},
    {"id": "KETTLE", "name": "Cast-iron kettle", "price": "45.00", "weight_grams": "1500"},
    {"id": "TRAY", "name": "Bamboo tray", "price": "19.90", "weight_grams": "900"},
    {"id": "SAMPLER", "name": "Autumn sampler", "price": "15.00", "weight_grams": "300",
     "is_active": False},
]

DELIVERY_METHODS = [
    {
        "id": "standard",
        "label": "Standard post",
        "amount": "7",
        "is_default": True,
        "sort_order": 0,
        "rules": [
            {
                "id": "std-light",
                "label": "Up to 5 kg",
                "min_weight_grams": "0",
                "max_weight_grams": "5000",
                "base_weight_grams": "500",
                "base_charge": "5",
                "incremental_unit_grams": "1000",
                "incremental_charge": "2",
                "increment_rounding": "ceil",
                "sort_order": 0,
            },
        ],
    },
    {"id": "express", "label": "Express courier", "amount": "15", "sort_order": 1},
    {"id": "pickup", "label": "Store pickup", "amount": "0", "sort_order": 2},
    {"id": "freight", "label": "Freight", "amount": "60", "sort_order": 3, "is_active": False},
]

CHARGES = [
    {"id": "vat", "label": "VAT", "type": "tax", "calc_type": "percent", "amount": "7.5", "sort_order": 0},
    {"id": "packaging", "label": "Packaging", "type": "fee", "calc_type": "amount", "amount": "1.50",
     "sort_order": 1},
    {"id": "loyalty", "label": "Loyalty", "type": "discount", "calc_type": "percent", "amount": "2",
     "sort_order": 2, "is_active": False},
]

COUPONS = [
    {"id": "c-summer", "code": "summer25", "calc_type": "percent", "amount": 25,
     "min_order_amount": "50", "description": "25% off orders from 50"},
    {"id": "c-welcome", "code": "WELCOME5", "calc_type": "amount", "amount": "5",
     "min_order_amount": ""},
    {"id": "c-spring", "code": "SPRING10", "calc_type": "percent", "amount": "10",
     "valid_to": "2020-06-01T00:00:00Z"},
]


def seed_all(store: MemoryStore) -> MemoryStore:
    for product in PRODUCTS:
        store.add_product(product)
    for method in DELIVERY_METHODS:
        store.add_delivery_method(method)
    for charge in CHARGES:
        store.add_charge(charge)
    for coupon in COUPONS:
        store.add_coupon(coupon)
    return store


__all__ = ("PRODUCTS", "DELIVERY_METHODS", "CHARGES", "COUPONS", "seed_all")
