from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from frequency.core.database import get_db
from frequency.api.deps import get_current_user
from frequency.schemas.friendship import FriendRequestCreate, FriendEdge, FriendsList
from frequency.models.user import User as UserModel
from frequency.services.friendship import FriendshipService

router = APIRouter()


@router.get("", response_model=FriendsList)
async def get_friends(
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Accepted friends and incoming friend requests"""
    service = FriendshipService(db)
    return await service.list_friends(current_user.id)


@router.post("/requests", response_model=FriendEdge, status_code=status.HTTP_201_CREATED)
async def send_friend_request(
    request_data: FriendRequestCreate,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Send a friend request to another user"""
    service = FriendshipService(db)
    return await service.send_request(current_user.id, request_data.friend_id)


@router.put("/requests/{edge_id}/accept", response_model=FriendEdge)
async def accept_friend_request(
    edge_id: int,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Accept a friend request addressed to the current user"""
    service = FriendshipService(db)
    return await service.accept_request(edge_id, current_user.id)


@router.delete("/requests/{edge_id}", status_code=status.HTTP_204_NO_CONTENT)
async def reject_friend_request(
    edge_id: int,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Decline a friend request"""
    service = FriendshipService(db)
    await service.delete_edge(edge_id, current_user.id)


@router.delete("/{edge_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_friend(
    edge_id: int,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Remove a friend"""
    service = FriendshipService(db)
    await service.delete_edge(edge_id, current_user.id)
