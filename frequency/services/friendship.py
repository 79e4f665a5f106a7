from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, List
import logging

from frequency.repositories.friendship import FriendshipRepository
from frequency.repositories.user import UserRepository
from frequency.schemas.friendship import FriendEdge, FriendsList, FriendshipStatus
from frequency.schemas.user import ProfileSummary
from frequency.schemas.realtime import ChangeEvent, Table
from frequency.models.friendship import Friendship
from frequency.models.user import Profile
from frequency.core.config import settings
from frequency.core.realtime import connection_manager
from frequency.utils.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class FriendshipService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = FriendshipRepository(db)
        self.user_repo = UserRepository(db)

    async def search_users(self, query: str, current_user_id: str) -> List[ProfileSummary]:
        """Find people to befriend by display name"""
        if not query or not query.strip():
            raise ValidationError("Search query must not be empty")

        profiles = await self.user_repo.search_profiles(
            query.strip(), current_user_id, settings.FRIEND_SEARCH_LIMIT
        )
        return [ProfileSummary.model_validate(profile) for profile in profiles]

    async def send_request(self, user_id: str, friend_id: str) -> FriendEdge:
        """Send a friend request"""
        if user_id == friend_id:
            raise ValidationError("Cannot send friend request to yourself")

        if not await self.user_repo.get_profile(friend_id):
            raise NotFoundError("User not found")

        # Either direction counts as an existing edge
        friendship = await self.repo.create_edge(user_id, friend_id)
        logger.info(f"Friend request {friendship.id} sent from {user_id} to {friend_id}")

        await self._publish(friendship, ChangeEvent.INSERT)
        return await self._to_edge(friendship, user_id)

    async def accept_request(self, edge_id: int, user_id: str) -> FriendEdge:
        """Accept a pending request addressed to the user"""
        friendship = await self.repo.get_incoming_edge(edge_id, user_id)
        if not friendship:
            raise NotFoundError("Friend request not found or you don't have permission to accept it")

        if friendship.status == FriendshipStatus.PENDING.value:
            friendship = await self.repo.mark_accepted(friendship)
            logger.info(f"Friend request {edge_id} accepted by {user_id}")
            await self._publish(friendship, ChangeEvent.UPDATE)

        return await self._to_edge(friendship, user_id)

    async def delete_edge(self, edge_id: int, user_id: str) -> None:
        """Reject a pending request or remove an accepted friend"""
        friendship = await self.repo.delete_edge(edge_id, user_id)
        if not friendship:
            raise NotFoundError("Friendship not found")

        logger.info(f"Friendship {edge_id} ({friendship.status}) deleted by {user_id}")
        await self._publish(friendship, ChangeEvent.DELETE)

    async def list_friends(self, user_id: str) -> FriendsList:
        """Accepted friends and incoming pending requests.

        Edges are fetched first, then the counterpart profiles, which are
        merged in through an id -> profile map.
        """
        edges = await self.repo.get_edges_for_user(user_id)

        counterpart_ids = [edge.counterpart_of(user_id) for edge in edges]
        profiles = await self.user_repo.get_profiles_by_ids(counterpart_ids)
        profile_map: Dict[str, Profile] = {profile.id: profile for profile in profiles}

        accepted = []
        pending_incoming = []
        for edge in edges:
            enriched = self._build_edge(edge, user_id, profile_map)
            if edge.status == FriendshipStatus.ACCEPTED.value:
                accepted.append(enriched)
            elif edge.status == FriendshipStatus.PENDING.value and edge.friend_id == user_id:
                pending_incoming.append(enriched)

        return FriendsList(accepted=accepted, pending_incoming=pending_incoming)

    async def _to_edge(self, friendship: Friendship, user_id: str) -> FriendEdge:
        counterpart_id = friendship.counterpart_of(user_id)
        profiles = await self.user_repo.get_profiles_by_ids([counterpart_id])
        return self._build_edge(friendship, user_id, {profile.id: profile for profile in profiles})

    @staticmethod
    def _build_edge(friendship: Friendship, user_id: str, profile_map: Dict[str, Profile]) -> FriendEdge:
        counterpart_id = friendship.counterpart_of(user_id)
        profile = profile_map.get(counterpart_id)
        return FriendEdge(
            id=friendship.id,
            user_id=friendship.user_id,
            friend_id=friendship.friend_id,
            status=FriendshipStatus(friendship.status),
            created_at=friendship.created_at,
            updated_at=friendship.updated_at,
            counterpart_id=counterpart_id,
            counterpart=ProfileSummary.model_validate(profile) if profile else None
        )

    async def _publish(self, friendship: Friendship, event: ChangeEvent) -> None:
        await connection_manager.publish_change(
            Table.FRIENDSHIPS,
            event,
            friendship.id,
            audience=[friendship.user_id, friendship.friend_id]
        )
