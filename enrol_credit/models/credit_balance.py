from beanie import Document, Indexed


class CreditBalance(Document):
    """Current balance per user; only ever changed with atomic $inc updates."""
    user_id: Indexed(int, unique=True)
    balance: int = 0

    class Settings:
        name = "credit_balances"
