import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from settleup.core.auth import get_current_user
from settleup.core.database import get_db
from settleup.core.exceptions import LedgerError
from settleup.models.user import User
from settleup.schemas.group import GroupCreate, GroupResponse, GroupListResponse, MemberCreate, MemberResponse
from settleup.services.group_service import (
    create_group,
    list_user_groups,
    get_group_for_member,
    add_member,
    remove_member,
    delete_group,
)

router = APIRouter(prefix="/api/groups", tags=["groups"])


@router.post("", response_model=GroupResponse, status_code=201)
async def create(
    body: GroupCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await create_group(db, body.name, user)


@router.get("", response_model=list[GroupListResponse])
async def list_groups(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await list_user_groups(db, user.id)


@router.get("/{group_id}", response_model=GroupResponse)
async def get(
    group_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await get_group_for_member(db, group_id, user.id)
    except LedgerError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.delete("/{group_id}", status_code=204)
async def delete(
    group_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        await delete_group(db, group_id, user.id)
    except LedgerError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("/{group_id}/members", response_model=MemberResponse, status_code=201)
async def add(
    group_id: uuid.UUID,
    body: MemberCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await add_member(db, user.id, group_id, body.name, body.email)
    except LedgerError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.delete("/{group_id}/members/{member_id}", status_code=204)
async def remove(
    group_id: uuid.UUID,
    member_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        await remove_member(db, user.id, group_id, member_id)
    except LedgerError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
