"""
Twinshot Backend — Friendship Routes
======================================

What:  Friend list, incoming requests, account search, and the
       request / respond / unfriend transitions.

Route Inventory:
    GET    /friends                 accepted friends
    GET    /friends/requests        pending requests addressed to the caller
    GET    /friends/search?query=   substring search, caller excluded
    POST   /friends/search          {query}, same search
    POST   /friends/request         {friend_id}
    PUT    /friends/respond         {friend_id, status}
    DELETE /friends/{friend_id}     unfriend (idempotent)
"""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_account
from app.models.account import Account
from app.schemas.account import PublicAccount
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.friendship import (
    FriendRequestCreate,
    FriendRequestItem,
    FriendRespondRequest,
    FriendResponse,
    FriendSearchRequest,
)
from app.services.friendship_service import friendship_service

router = APIRouter(prefix="/friends", tags=["Friends"])


@router.get("", response_model=List[FriendResponse], summary="Accepted friends")
async def list_friends(
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> List[FriendResponse]:
    return await friendship_service.list_friends(db, account.id)


@router.get(
    "/requests",
    response_model=List[FriendRequestItem],
    summary="Pending friend requests sent to the caller",
)
async def list_requests(
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> List[FriendRequestItem]:
    return await friendship_service.list_pending_requests(db, account.id)


@router.get(
    "/search",
    response_model=List[PublicAccount],
    responses={400: {"description": "Empty query", "model": ErrorResponse}},
    summary="Search accounts by username or display name",
)
async def search_accounts(
    query: str = Query(default="", max_length=100, description="Case-insensitive substring"),
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> List[PublicAccount]:
    return await friendship_service.search(db, account.id, query)


@router.post(
    "/search",
    response_model=List[PublicAccount],
    responses={400: {"description": "Empty query", "model": ErrorResponse}},
    summary="Search accounts, query in the JSON body",
)
async def search_accounts_body(
    data: FriendSearchRequest,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> List[PublicAccount]:
    return await friendship_service.search(db, account.id, data.query)


@router.post(
    "/request",
    status_code=201,
    response_model=MessageResponse,
    responses={
        400: {"description": "Requesting yourself", "model": ErrorResponse},
        404: {"description": "Unknown account", "model": ErrorResponse},
        409: {"description": "Request or friendship already exists", "model": ErrorResponse},
    },
    summary="Send a friend request",
)
async def send_request(
    data: FriendRequestCreate,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await friendship_service.send_request(db, account.id, data.friend_id)
    return MessageResponse(message="Friend request sent")


@router.put(
    "/respond",
    response_model=MessageResponse,
    responses={
        400: {"description": "Status is not accepted/declined", "model": ErrorResponse},
        404: {"description": "No pending request from that account", "model": ErrorResponse},
    },
    summary="Accept or decline a pending request",
)
async def respond_to_request(
    data: FriendRespondRequest,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    edge = await friendship_service.respond(db, account.id, data.friend_id, data.status)
    return MessageResponse(message=f"Friend request {edge.status}")


@router.delete("/{friend_id}", response_model=MessageResponse, summary="Unfriend")
async def remove_friend(
    friend_id: int,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await friendship_service.remove(db, account.id, friend_id)
    return MessageResponse(message="Friend removed")
