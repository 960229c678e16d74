from fastapi import APIRouter, Depends, Query

from enrol_credit.core.pagination import Page, paginate
from enrol_credit.deps import get_current_user
from enrol_credit.models.user import User
from enrol_credit.services import credits as credits_service

router = APIRouter()


@router.get("/balance")
async def credits_balance(user: User = Depends(get_current_user)):
    """Return current credit balance."""
    balance = await credits_service.get_balance(user.id)
    return {"userid": user.id, "balance": balance}


@router.get("/ledger")
async def credits_ledger(
    user: User = Depends(get_current_user),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> Page[dict]:
    """Return ledger entries for current user (newest first)."""
    limit, offset = paginate(limit, offset)
    entries, total = await credits_service.list_ledger(user.id, limit, offset)
    items = [
        {
            "id": str(e.id),
            "amount": e.amount,
            "balance_after": e.balance_after,
            "reason": e.reason,
            "reference_type": e.reference_type,
            "reference_id": e.reference_id,
            "created_at": e.created_at.isoformat(),
        }
        for e in entries
    ]
    return Page[dict](items=items, limit=limit, offset=offset, total=total)
