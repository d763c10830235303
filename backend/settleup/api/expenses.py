import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from settleup.core.auth import get_current_user
from settleup.core.database import get_db
from settleup.core.exceptions import LedgerError
from settleup.models.user import User
from settleup.schemas.expense import ExpenseCreate, ExpenseResponse, ExpenseDeleteResponse
from settleup.services.expense_service import create_expense, list_group_expenses, delete_expense
from settleup.services.split_service import SplitEntry

router = APIRouter(tags=["expenses"])


@router.post("/api/groups/{group_id}/expenses", response_model=ExpenseResponse, status_code=201)
async def create(
    group_id: uuid.UUID,
    body: ExpenseCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    entries = [SplitEntry(s.user_id, s.amount, s.percentage) for s in body.splits]
    try:
        return await create_expense(
            db, user.id, group_id, body.description, body.amount, body.split_type, entries
        )
    except LedgerError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/api/groups/{group_id}/expenses", response_model=list[ExpenseResponse])
async def list_expenses(
    group_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await list_group_expenses(db, user.id, group_id)
    except LedgerError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.delete("/api/expenses/{expense_id}", response_model=ExpenseDeleteResponse)
async def remove(
    expense_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        group_id = await delete_expense(db, user.id, expense_id)
    except LedgerError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return ExpenseDeleteResponse(message="Expense deleted successfully", group_id=group_id)
