from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import or_, and_, select
from sqlalchemy.exc import IntegrityError
from typing import List, Optional
import logging

from frequency.models.friendship import Friendship, make_pair_key
from frequency.schemas.friendship import FriendshipStatus
from frequency.utils.exceptions import DuplicateEdgeError

logger = logging.getLogger(__name__)


class FriendshipRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_edges_for_user(self, user_id: str) -> List[Friendship]:
        """Every edge where the user is either requester or recipient"""
        stmt = select(Friendship).where(
            or_(Friendship.user_id == user_id, Friendship.friend_id == user_id)
        ).order_by(Friendship.created_at.desc(), Friendship.id.desc())
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def create_edge(self, user_id: str, friend_id: str) -> Friendship:
        """Insert a pending edge; the pair uniqueness constraint rejects duplicates"""
        friendship = Friendship(
            user_id=user_id,
            friend_id=friend_id,
            status=FriendshipStatus.PENDING.value,
            pair_key=make_pair_key(user_id, friend_id)
        )
        self.db.add(friendship)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info(f"Duplicate friendship edge between {user_id} and {friend_id}")
            raise DuplicateEdgeError()
        await self.db.refresh(friendship)
        return friendship

    async def get_incoming_edge(self, edge_id: int, user_id: str) -> Optional[Friendship]:
        """Edge addressed to the user (only the recipient can accept)"""
        stmt = select(Friendship).where(
            and_(
                Friendship.id == edge_id,
                Friendship.friend_id == user_id
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def mark_accepted(self, friendship: Friendship) -> Friendship:
        friendship.status = FriendshipStatus.ACCEPTED.value
        await self.db.commit()
        await self.db.refresh(friendship)
        return friendship

    async def delete_edge(self, edge_id: int, user_id: str) -> Optional[Friendship]:
        """Delete an edge the user is party to; returns the deleted edge"""
        stmt = select(Friendship).where(
            and_(
                Friendship.id == edge_id,
                or_(
                    Friendship.user_id == user_id,
                    Friendship.friend_id == user_id
                )
            )
        )
        result = await self.db.execute(stmt)
        friendship = result.scalar_one_or_none()

        if friendship:
            await self.db.delete(friendship)
            await self.db.commit()

        return friendship
