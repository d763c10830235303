import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from settleup.core.auth import get_current_user
from settleup.core.database import get_db
from settleup.core.exceptions import LedgerError
from settleup.models.user import User
from settleup.schemas.settlement import SettlementCreate, SettlementResponse
from settleup.services.settlement_service import (
    record_settlement,
    confirm_settlement,
    list_group_settlements,
    list_pending_settlements,
)

router = APIRouter(tags=["settlements"])


@router.post("/api/groups/{group_id}/settlements", response_model=SettlementResponse, status_code=201)
async def create(
    group_id: uuid.UUID,
    body: SettlementCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await record_settlement(
            db, user.id, group_id, body.from_user, body.to_user, body.amount, body.method, body.note
        )
    except LedgerError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/api/groups/{group_id}/settlements", response_model=list[SettlementResponse])
async def list_settlements(
    group_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await list_group_settlements(db, user.id, group_id)
    except LedgerError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/api/settlements/pending", response_model=list[SettlementResponse])
async def pending(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await list_pending_settlements(db, user.id)


@router.post("/api/settlements/{settlement_id}/confirm", response_model=SettlementResponse)
async def confirm(
    settlement_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await confirm_settlement(db, settlement_id, user.id)
    except LedgerError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
