from peep.models.user import Profile
from peep.models.friendship import Friendship
from peep.models.status import UserStatus
from peep.models.peep import Peep

__all__ = [
    "Profile",
    "Friendship",
    "UserStatus",
    "Peep",
]
