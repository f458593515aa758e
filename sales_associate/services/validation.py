"""
validation.py — Inquiry completeness checks and soft-attribute inference

Pure functions, no I/O.

Business Rules:
- Complete = Email, First_Name, Days, Number_Travelers, Journey_Interest
  all present and non-blank; Days must also start with an integer
- Optional fields never affect completeness
- Journey type, start/end city and hospitality tier are inferred from
  free text by keyword; every inference has a default

Called by: services/pipeline.py
Depends on: utils (safe_int)
"""

import math
from dataclasses import dataclass, field

from ..utils import safe_int

REQUIRED_FOR_ITINERARY = [
    "Email",
    "First_Name",
    "Days",
    "Number_Travelers",
    "Journey_Interest",
]

OPTIONAL_BUT_HELPFUL = [
    "Start_City",
    "End_City",
    "Journey_Type",
    "Budget",
    "Language",
]

FIELD_LABELS = {
    "Email": "Email address",
    "First_Name": "First name",
    "Last_Name": "Last name",
    "Days": "Number of days",
    "Number_Travelers": "Number of travelers",
    "Journey_Interest": "Journey interest",
    "Start_City": "Starting city",
    "End_City": "Ending city",
    "Journey_Type": "Type of journey (Desert, Coast, Mountains, etc.)",
    "Budget": "Budget",
    "Language": "Preferred guide language",
    "Start_Date": "Travel dates",
}

# Checked in order; first category with a matching keyword wins
JOURNEY_KEYWORDS = [
    ("Desert", ("sahara", "desert", "dunes")),
    ("Coast", ("coast", "essaouira", "beach")),
    ("Mountains", ("atlas", "mountain", "trek")),
    ("Imperial Cities", ("imperial", "cities", "fes", "marrakech")),
    ("Northern", ("rif", "chefchaouen", "north")),
]
DEFAULT_JOURNEY_TYPE = "Mixed"
HUB_CITY = "Marrakech"

MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


@dataclass
class ValidationResult:
    is_complete: bool
    missing_fields: list[str] = field(default_factory=list)

    @property
    def can_generate_itinerary(self) -> bool:
        return self.is_complete


def _blank(value) -> bool:
    return value is None or str(value).strip() == ""


def validate_quote(quote: dict) -> ValidationResult:
    """Which required fields are missing from a (partial) quote."""
    missing = [f for f in REQUIRED_FOR_ITINERARY if _blank(quote.get(f))]

    days = quote.get("Days")
    if not _blank(days) and safe_int(days) is None:
        missing.append("Days")

    return ValidationResult(is_complete=not missing, missing_fields=missing)


def field_label(field_name: str) -> str:
    return FIELD_LABELS.get(field_name, field_name)


def missing_field_labels(fields: list[str]) -> list[str]:
    return [field_label(f) for f in fields]


def infer_journey_type(journey_interest: str | None) -> str:
    interest = (journey_interest or "").lower()
    for journey_type, keywords in JOURNEY_KEYWORDS:
        if any(k in interest for k in keywords):
            return journey_type
    return DEFAULT_JOURNEY_TYPE


def infer_cities(journey_interest: str | None) -> tuple[str, str]:
    """(start, end) city. Most journeys start and end in the hub city."""
    interest = (journey_interest or "").lower()
    start = end = HUB_CITY

    if "fes to" in interest or "from fes" in interest:
        start = "Fes"
    if "to fes" in interest or "ending in fes" in interest:
        end = "Fes"
    for city in ("Casablanca", "Tangier"):
        if city.lower() in interest:
            if f"from {city.lower()}" in interest:
                start = city
            else:
                end = city

    return start, end


def infer_hospitality_level(budget) -> str:
    """ESSENTIALS under 2000, BOUTIQUE under 5000, else SIGNATURE."""
    if isinstance(budget, float) and math.isinf(budget):
        return "SIGNATURE" if budget > 0 else "ESSENTIALS"
    amount = safe_int(budget)
    if amount is None:
        return "BOUTIQUE"
    if amount < 2000:
        return "ESSENTIALS"
    if amount < 5000:
        return "BOUTIQUE"
    return "SIGNATURE"


def start_date_from_month(month: str | None, year) -> str:
    """Mid-month placeholder start date, e.g. ("March", 2026) → 2026-03-15."""
    if month not in MONTHS or _blank(year):
        return ""
    return f"{year}-{MONTHS.index(month) + 1:02d}-15"
