"""Following relationship between a follower and a trader."""

# Standard library imports
from dataclasses import dataclass, field
from datetime import UTC, datetime

from ..constants import MAX_PERCENTAGE, MIN_PERCENTAGE
from ..exceptions_ledger import InvalidPercentageError, SelfFollowError


@dataclass
class FollowingRelationship:
    """
    A follower's standing instruction to mirror a trader at a fixed percentage.

    The percentage is only meaningful while ``active`` is true; unfollowing
    resets it to zero.
    """

    follower: str
    trader: str
    percentage: int = 0
    active: bool = False
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if self.follower == self.trader:
            raise SelfFollowError(self.follower)
        if self.active and not MIN_PERCENTAGE <= self.percentage <= MAX_PERCENTAGE:
            raise InvalidPercentageError(self.percentage)

    def activate(self, percentage: int) -> None:
        if not MIN_PERCENTAGE <= percentage <= MAX_PERCENTAGE:
            raise InvalidPercentageError(percentage)
        self.percentage = percentage
        self.active = True
        self.updated_at = datetime.now(UTC)

    def deactivate(self) -> None:
        self.percentage = 0
        self.active = False
        self.updated_at = datetime.now(UTC)
