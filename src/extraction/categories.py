# src/extraction/categories.py — v1
"""Fixed expense category list the extraction model must choose from."""

from __future__ import annotations

FALLBACK_CATEGORY = "Other"

RECEIPT_CATEGORY_GROUPS: dict[str, tuple[str, ...]] = {
    "construction": (
        "Building Materials", "Hardware & Tools", "Paint & Finishes",
        "Plumbing & Sanitary", "Electrical Supplies",
    ),
    "transport_energy": (
        "Fuel & Lubricants", "Vehicle Maintenance", "Transport Services",
        "Energy & Utilities",
    ),
    "agriculture": (
        "Seeds & Inputs", "Fertilizers & Chemicals", "Irrigation Supplies",
        "Farm Tools & Equipment", "Animal Feed & Supplements",
        "Veterinary Services", "Livestock & Poultry",
        "Crop Harvesting & Processing", "Greenhouse Supplies",
        "Agro Consultancy & Training",
    ),
    "household_office": (
        "Furniture & Fixtures", "Electronics & Appliances", "Utensils & Cutlery",
        "Cleaning Supplies", "Stationery & Office Supplies",
    ),
    "food": (
        "Groceries & Provisions", "Perishables", "Beverages",
        "Restaurant & Catering",
    ),
    "personal": (
        "Clothing & Footwear", "Personal Care & Beauty", "Health & Medicine",
        "Baby & Kids Supplies",
    ),
    "telecom_it": (
        "Phones & Accessories", "Computers & IT Equipment", "Internet & Airtime",
    ),
    "lifestyle": (
        "Gifts & Donations", "Entertainment & Leisure", "Education & Learning",
        "Subscriptions & Memberships",
    ),
    "business": (
        "Raw Materials", "Packaging Supplies", "Marketing & Branding",
        "Employee Salaries & Wages", "Professional Services", "Licenses & Permits",
    ),
    "property": (
        "Rent & Lease", "Land & Property Purchases", "Security & Surveillance",
    ),
    "maintenance": (
        "Repairs & Maintenance", "Emergency Purchases",
    ),
}

RECEIPT_CATEGORIES: tuple[str, ...] = tuple(
    c for group in RECEIPT_CATEGORY_GROUPS.values() for c in group
)


def normalize_category(value: str | None) -> str:
    """Return the canonical category name, or the fallback when unknown."""
    if not value:
        return FALLBACK_CATEGORY
    wanted = value.strip().casefold()
    for category in RECEIPT_CATEGORIES:
        if category.casefold() == wanted:
            return category
    return FALLBACK_CATEGORY
