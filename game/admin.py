import hmac
from typing import Iterable, Optional


class AdminPolicy:
    """Decides, once per connect, whether a session carries the admin claim."""

    def __init__(self, nicknames: Iterable[str] = (), token: Optional[str] = None):
        self.nicknames = frozenset(nicknames)
        self.token = token

    def is_admin(self, nickname: str, admin_token: Optional[str] = None) -> bool:
        if nickname in self.nicknames:
            return True
        if self.token and admin_token:
            return hmac.compare_digest(self.token, admin_token)
        return False
