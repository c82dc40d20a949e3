"""Domain entities with ledger behavior."""

from .following import FollowingRelationship
from .position import Position

__all__ = ["FollowingRelationship", "Position"]
