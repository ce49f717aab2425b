"""
Debt categories and lifecycle states shared by models, services and the CLI.
"""

DEBT_CATEGORIES = [
    "credit_card",
    "personal_loan",
    "auto_loan",
    "mortgage",
    "student_loan",
    "medical",
    "other",
]

STATUS_ACTIVE = "active"
STATUS_PAID_OFF = "paid_off"
STATUS_DEFAULTED = "defaulted"
STATUS_DEFERRED = "deferred"

DEBT_STATUSES = [STATUS_ACTIVE, STATUS_PAID_OFF, STATUS_DEFAULTED, STATUS_DEFERRED]

MAX_APR_PERCENT = 100.0
MAX_NAME_LENGTH = 64
