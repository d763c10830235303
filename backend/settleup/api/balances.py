import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from settleup.core.auth import get_current_user
from settleup.core.database import get_db
from settleup.core.exceptions import LedgerError
from settleup.models.user import User
from settleup.schemas.balance import GroupBalancesResponse, UserBalancesResponse
from settleup.services.balance_service import get_group_balances, get_user_balances

router = APIRouter(tags=["balances"])


@router.get("/api/balances", response_model=UserBalancesResponse)
async def user_balances(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_user_balances(db, user.id)


@router.get("/api/groups/{group_id}/balances", response_model=GroupBalancesResponse)
async def group_balances(
    group_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await get_group_balances(db, group_id, user.id)
    except LedgerError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
