"""Credits ledger and atomic balance updates.

Every balance change is a single ``$inc`` on the user's balance document, so
concurrent requests can never lose an update. Debits are compare-and-swap:
the update only matches while ``balance >= amount``.
"""

from dataclasses import dataclass

from pymongo import ReturnDocument

from enrol_credit.core.audit import log_event
from enrol_credit.core.exceptions import BadRequestError, NotFoundError
from enrol_credit.core.logging import get_logger
from enrol_credit.models.credit_balance import CreditBalance
from enrol_credit.models.credit_ledger import CreditLedgerEntry
from enrol_credit.models.user import User

log = get_logger(__name__)

REASONS = ("topup", "enrolment", "refund")

# MongoDB stores balances as signed 64-bit integers.
MAX_CREDIT = 2**63 - 1


@dataclass(frozen=True)
class CreditGrant:
    """One line of an admin credit batch: credit x quantity for user_id."""
    user_id: int
    credit: int
    quantity: int

    @property
    def amount(self) -> int:
        return self.credit * self.quantity


async def get_balance(user_id: int) -> int:
    """Return current balance for user (0 if no record)."""
    bal = await CreditBalance.find_one(CreditBalance.user_id == user_id)
    return bal.balance if bal else 0


async def _record(
    user_id: int,
    amount: int,
    balance_after: int,
    reason: str,
    reference_type: str | None,
    reference_id: str | None,
) -> CreditLedgerEntry:
    if reason not in REASONS:
        raise BadRequestError(f"Invalid reason: {reason}")
    entry = CreditLedgerEntry(
        user_id=user_id,
        amount=amount,
        balance_after=balance_after,
        reason=reason,
        reference_type=reference_type,
        reference_id=reference_id,
    )
    await entry.insert()
    return entry


async def _increment(user_id: int, amount: int) -> int:
    doc = await CreditBalance.get_motor_collection().find_one_and_update(
        {"user_id": user_id},
        {"$inc": {"balance": amount}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return doc["balance"]


def _require_positive(amount) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise BadRequestError("Credit amount must be a positive integer", details={"amount": amount})
    if amount > MAX_CREDIT:
        raise BadRequestError("Credit amount is too large", details={"amount": amount})


async def add_credits(
    user_id: int,
    amount: int,
    actor_id: int | None = None,
    reference_type: str = "admin_topup",
    reference_id: str | None = None,
) -> int:
    """Top up user's balance by amount; return balance after."""
    _require_positive(amount)
    if not await User.get(user_id):
        raise NotFoundError("User not found")
    if await get_balance(user_id) > MAX_CREDIT - amount:
        raise BadRequestError("Resulting balance is too large", details={"amount": amount})
    balance_after = await _increment(user_id, amount)
    await _record(user_id, amount, balance_after, "topup", reference_type, reference_id)
    log.info("credits_added", target_user_id=user_id, amount=amount, balance_after=balance_after)
    await log_event(actor_id, "credits_added", "user", user_id, {"amount": amount, "balance_after": balance_after})
    return balance_after


async def debit(user_id: int, amount: int, reference_type: str, reference_id: str) -> int | None:
    """
    Take amount from user's balance if it covers it.
    Returns balance after, or None when the balance is (or just became) too low.
    """
    _require_positive(amount)
    doc = await CreditBalance.get_motor_collection().find_one_and_update(
        {"user_id": user_id, "balance": {"$gte": amount}},
        {"$inc": {"balance": -amount}},
        return_document=ReturnDocument.AFTER,
    )
    if doc is None:
        log.info("credits_debit_refused", target_user_id=user_id, amount=amount)
        return None
    balance_after = doc["balance"]
    try:
        await _record(user_id, -amount, balance_after, "enrolment", reference_type, reference_id)
    except Exception:
        await _increment(user_id, amount)
        log.exception("credits_debit_reverted", target_user_id=user_id, amount=amount)
        raise
    log.info("credits_debited", target_user_id=user_id, amount=amount, balance_after=balance_after)
    return balance_after


async def refund(user_id: int, amount: int, reference_type: str, reference_id: str) -> int:
    """Give back a debit whose enrolment did not go through."""
    _require_positive(amount)
    balance_after = await _increment(user_id, amount)
    await _record(user_id, amount, balance_after, "refund", reference_type, reference_id)
    log.warning("credits_refunded", target_user_id=user_id, amount=amount, balance_after=balance_after)
    return balance_after


async def credit_users(grants: list[CreditGrant], actor_id: int | None = None) -> dict[int, int]:
    """
    Apply a batch of grants. Every entry is checked before any credit is added,
    so one invalid entry rejects the whole batch. Returns user_id -> balance after.
    """
    totals: dict[int, int] = {}
    for index, grant in enumerate(grants):
        if grant.credit <= 0 or grant.quantity <= 0:
            raise BadRequestError(
                f"Invalid credit entry at position {index}: credit and quantity must be positive",
                details={"index": index, "userid": grant.user_id},
            )
        if not await User.get(grant.user_id):
            raise NotFoundError(f"User {grant.user_id} not found (entry {index})")
        if grant.user_id not in totals:
            totals[grant.user_id] = await get_balance(grant.user_id)
        totals[grant.user_id] += grant.amount
        if totals[grant.user_id] > MAX_CREDIT:
            raise BadRequestError(
                f"Invalid credit entry at position {index}: resulting balance is too large",
                details={"index": index, "userid": grant.user_id},
            )

    balances: dict[int, int] = {}
    for grant in grants:
        balances[grant.user_id] = await add_credits(grant.user_id, grant.amount, actor_id=actor_id)
    return balances


async def list_ledger(user_id: int, limit: int, offset: int) -> tuple[list[CreditLedgerEntry], int]:
    """Ledger entries for user, newest first, plus total count."""
    query = CreditLedgerEntry.find(CreditLedgerEntry.user_id == user_id)
    total = await query.count()
    entries = (
        await CreditLedgerEntry.find(CreditLedgerEntry.user_id == user_id)
        .sort(-CreditLedgerEntry.created_at, -CreditLedgerEntry.id)
        .skip(offset)
        .limit(limit)
        .to_list()
    )
    return entries, total
