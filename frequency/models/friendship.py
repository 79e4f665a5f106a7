from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func

from frequency.core.database import Base


def make_pair_key(user1_id: str, user2_id: str) -> str:
    """Order-independent key of an unordered user pair"""
    first, second = sorted((user1_id, user2_id))
    return f"{first}:{second}"


class Friendship(Base):
    """Directed edge; user_id sent the request, friend_id received it"""
    __tablename__ = "friendships"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    friend_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String, nullable=False, default="pending")  # pending, accepted
    pair_key = Column(String, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # At most one edge per unordered pair
    __table_args__ = (
        UniqueConstraint('pair_key', name='unique_friendship_pair'),
    )

    def counterpart_of(self, user_id: str) -> str:
        return self.friend_id if self.user_id == user_id else self.user_id
