# mlm_system/utils/chain_walker.py
"""
Safe sponsor chain walking utilities.
The sponsor link is a username; walks guard against cycles and runaway depth.
"""
from typing import Optional, Callable, Set, List, Dict
from sqlalchemy.orm import Session
import logging

from models.user import User

logger = logging.getLogger(__name__)


class SponsorChainWalker:
    """
    Utilities for walking sponsor upline/downline chains.
    """

    def __init__(self, session: Session):
        self.session = session

    def findByUsername(self, username: Optional[str]) -> Optional[User]:
        if not username:
            return None
        return self.session.query(User).filter_by(username=username).first()

    def walk_upline(
            self,
            start_user: User,
            callback: Callable[[User, int], bool],
            max_depth: int = 50
    ) -> int:
        """
        Walk up the sponsor chain, calling callback for each ancestor.

        Args:
            start_user: Starting user (not passed to callback)
            callback: Function(sponsor, level) -> continue_walking (bool)
            max_depth: Highest level handed to callback

        Returns:
            Number of sponsors processed
        """
        current_user = start_user
        level = 1
        processed = 0
        visited = {start_user.userID}

        while current_user.sponsor and level <= max_depth:
            sponsor = self.findByUsername(current_user.sponsor)

            if not sponsor:
                logger.warning(
                    f"Sponsor not found: username={current_user.sponsor} "
                    f"for user {current_user.userID}"
                )
                break

            if sponsor.userID in visited:
                logger.error(f"Cycle detected at user {sponsor.userID}")
                break

            visited.add(sponsor.userID)

            should_continue = callback(sponsor, level)
            processed += 1

            if not should_continue:
                break

            current_user = sponsor
            level += 1

        if level > max_depth and current_user.sponsor:
            logger.warning(f"Max depth ({max_depth}) reached starting from user {start_user.userID}")

        return processed

    def walk_downline(
            self,
            start_user: User,
            callback: Callable[[User, int], None],
            max_depth: int = 50,
            visited: Optional[Set[int]] = None,
            level: int = 1
    ) -> int:
        """
        Walk down the referral tree recursively.

        Args:
            start_user: Starting user
            callback: Function(user, level) to call for each user
            max_depth: Maximum depth below start_user
            visited: Set of visited user IDs (for cycle detection)
            level: Depth of start_user's direct referrals

        Returns:
            Total number of users processed
        """
        if visited is None:
            visited = set()

        if level > max_depth:
            return 0

        if start_user.userID in visited:
            logger.error(f"Cycle detected in downline at user {start_user.userID}")
            return 0

        visited.add(start_user.userID)

        processed = 0
        for referral in self.get_direct_referrals(start_user):
            if referral.userID in visited:
                continue

            callback(referral, level)
            processed += 1

            processed += self.walk_downline(referral, callback, max_depth, visited, level + 1)

        return processed

    def get_direct_referrals(self, user: User) -> List[User]:
        return self.session.query(User).filter(
            User.sponsor == user.username
        ).order_by(User.userID).all()

    def count_direct_referrals(self, user: User) -> int:
        """Users whose sponsor is this user, counted now."""
        return self.session.query(User).filter(User.sponsor == user.username).count()

    def get_upline_chain(self, user: User, max_depth: int = 50) -> List[User]:
        """List of sponsors from the direct sponsor upward."""
        chain = []

        def collect(upline_user, level):
            chain.append(upline_user)
            return True

        self.walk_upline(user, collect, max_depth)
        return chain

    def count_downline(self, user: User, max_depth: int = 50) -> int:
        count = [0]  # list so the callback can mutate it

        def counter(downline_user, level):
            count[0] += 1

        self.walk_downline(user, counter, max_depth)
        return count[0]

    def downline_by_level(self, user: User, max_depth: int = 50) -> Dict[int, int]:
        """Team size per level: {1: directs, 2: their directs, ...}."""
        levels: Dict[int, int] = {}

        def counter(downline_user, level):
            levels[level] = levels.get(level, 0) + 1

        self.walk_downline(user, counter, max_depth)
        return levels

    def is_ancestor(self, candidate: User, user: User, max_depth: int = 50) -> bool:
        """True if candidate sits somewhere in user's upline."""
        found = [False]

        def check(upline_user, level):
            if upline_user.userID == candidate.userID:
                found[0] = True
                return False
            return True

        self.walk_upline(user, check, max_depth)
        return found[0]
