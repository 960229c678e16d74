from datetime import datetime

from beanie import Document
from pydantic import Field


class CreditLedgerEntry(Document):
    user_id: int
    amount: int  # positive = credit, negative = debit
    balance_after: int
    reason: str  # topup, enrolment, refund
    reference_type: str | None = None  # enrol_instance, admin_topup
    reference_id: str | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "credit_ledger"
        indexes = [
            [("user_id", 1), ("created_at", -1)],
        ]
