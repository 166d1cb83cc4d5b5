from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import (
    get_code_cache,
    get_current_stu_id,
    get_db,
    get_friend_policy,
    get_relationship_store,
)
from app.api.http_errors import user_service_error
from app.core.errors import UserServiceError
from app.schemas.user import (
    BindInvitationRequest,
    BindInvitationResponse,
    FriendListItem,
    InvitationCodeResponse,
    UserInfoResponse,
)
from app.services.cache import CodeCache
from app.services.friends import FriendCountPolicy, bind_invitation, list_friends
from app.services.invitation import get_invitation_code
from app.services.relations import RelationshipStore
from app.services.users import get_user_info

router = APIRouter(prefix="/user", tags=["user"])


@router.get("/info", response_model=UserInfoResponse)
async def user_info(
    db: AsyncSession = Depends(get_db),
    stu_id: str = Depends(get_current_stu_id),
):
    try:
        student = await get_user_info(db, stu_id)
    except UserServiceError as e:
        raise user_service_error(e) from e
    return UserInfoResponse(
        stu_id=student.stu_id,
        name=student.name,
        sex=student.sex,
        college=student.college,
        grade=student.grade,
        major=student.major,
    )


@router.get("/invitation-code", response_model=InvitationCodeResponse)
async def invitation_code(
    is_refresh: bool = Query(default=False),
    cache: CodeCache = Depends(get_code_cache),
    stu_id: str = Depends(get_current_stu_id),
):
    try:
        issued = await get_invitation_code(cache, stu_id, refresh=is_refresh)
    except UserServiceError as e:
        raise user_service_error(e) from e
    return InvitationCodeResponse(code=issued.code, created_at=issued.created_at)


@router.post("/friends/bind", response_model=BindInvitationResponse)
async def bind_friend(
    payload: BindInvitationRequest,
    cache: CodeCache = Depends(get_code_cache),
    store: RelationshipStore = Depends(get_relationship_store),
    policy: FriendCountPolicy = Depends(get_friend_policy),
    stu_id: str = Depends(get_current_stu_id),
):
    try:
        await bind_invitation(stu_id, payload.code, cache=cache, store=store, policy=policy)
    except UserServiceError as e:
        raise user_service_error(e) from e
    return BindInvitationResponse(ok=True)


@router.get("/friends", response_model=list[FriendListItem])
async def get_friends(
    db: AsyncSession = Depends(get_db),
    cache: CodeCache = Depends(get_code_cache),
    store: RelationshipStore = Depends(get_relationship_store),
    stu_id: str = Depends(get_current_stu_id),
):
    friends = await list_friends(db, cache, store, stu_id)
    return [FriendListItem(**f) for f in friends]
