"""Status values and sheet layout shared by the pipeline and the routers.

Statuses are plain strings in the sheet; nothing enforces transitions.
"""

QUOTES = "Quotes"
PROPOSALS = "Proposals"

# ── Quote statuses ───────────────────────────────────────────────────
QUOTE_NEW = "NEW"
QUOTE_IN_PROGRESS = "IN_PROGRESS"
QUOTE_ITINERARY_READY = "ITINERARY_READY"
QUOTE_PRICED = "PRICED"
QUOTE_SENT_TO_CLIENT = "SENT_TO_CLIENT"
QUOTE_PROPOSAL_APPROVED = "PROPOSAL_APPROVED"
QUOTE_PROPOSAL_REJECTED = "PROPOSAL_REJECTED"
QUOTE_PAID = "PAID"
QUOTE_CONFIRMED = "CONFIRMED"
QUOTE_CANCELLED = "CANCELLED"

# ── Proposal statuses ────────────────────────────────────────────────
PROPOSAL_DRAFT = "DRAFT"
PROPOSAL_PENDING_APPROVAL = "PENDING_APPROVAL"
PROPOSAL_APPROVED = "APPROVED"
PROPOSAL_REJECTED = "REJECTED"
PROPOSAL_SENT = "SENT"
PROPOSAL_PAID = "PAID"

# Column order of the Quotes tab; appended rows must follow it.
QUOTE_COLUMNS: list[str] = [
    "Client_ID",
    "First_Name",
    "Last_Name",
    "Country",
    "Email",
    "WhatsApp_Country_Code",
    "WhatsApp_Number",
    "Journey_Interest",
    "Start_Date",
    "End_Date",
    "Days",
    "Nights",
    "Language",
    "Hospitality_Level",
    "Dream_Experience",
    "Requests",
    "Hear_About_Us",
    "Number_Travelers",
    "Budget",
    "Start_City",
    "End_City",
    "Journey_Type",
    "Status",
    "Itinerary_Doc_Link",
    "Proposal_URL",
    "Created_Date",
    "Last_Updated",
    "Notes",
]
