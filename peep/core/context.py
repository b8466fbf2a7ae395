from typing import Dict, List, Optional, Set

from peep.schemas.status import UserStatus
from peep.schemas.user import AuthSession, FriendRequest, FriendWithStatus, Profile


class AppContext:
    """Client state for one signed-in user.

    Passed explicitly to every component that reads or writes it.
    Friends keep their fetch order.
    """

    def __init__(self):
        self.session: Optional[AuthSession] = None
        self.profile: Optional[Profile] = None
        self._friends: Dict[str, FriendWithStatus] = {}
        self.pending_requests: List[FriendRequest] = []
        self.is_loading = False

    @property
    def user_id(self) -> Optional[str]:
        return self.session.user_id if self.session else None

    @property
    def friends(self) -> List[FriendWithStatus]:
        return list(self._friends.values())

    def friend(self, friend_id: str) -> Optional[FriendWithStatus]:
        return self._friends.get(friend_id)

    def friend_ids(self) -> Set[str]:
        return set(self._friends)

    def set_friends(self, friends: List[FriendWithStatus]):
        """Replace the whole friend list (refetch)."""
        self._friends = {f.id: f for f in friends}

    def apply_status(self, status: UserStatus) -> bool:
        """Patch one friend's status. Returns False when the user is not a friend."""
        friend = self._friends.get(status.user_id)
        if friend is None:
            return False
        self._friends[status.user_id] = friend.model_copy(update={"status": status})
        return True

    def clear(self):
        self.session = None
        self.profile = None
        self._friends = {}
        self.pending_requests = []
        self.is_loading = False
