"""Профиль текущего пользователя."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from kabobfood.api.deps import get_current_user
from kabobfood.db.session import get_db
from kabobfood.models.user import User
from kabobfood.schemas.profile import ProfileOut
from kabobfood.services.profile import get_profile

router = APIRouter()


@router.get("/profile", response_model=ProfileOut)
async def profile_endpoint(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ProfileOut:
    return await get_profile(db, current_user)
