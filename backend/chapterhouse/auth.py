"""Identity oracle and admin authorization policy.

Authentication happens upstream; the identity provider forwards the
signed-in user as ``X-User-Id`` / ``X-User-Email`` headers. The admin
allow-list is an injected ``AdminPolicy`` so routes and engines never
consult global state directly.
"""
from dataclasses import dataclass
from typing import Iterable, Optional

from fastapi import Depends, Header

from chapterhouse.config import settings
from chapterhouse.errors import Forbidden, Unauthorized


@dataclass(frozen=True)
class Actor:
    user_id: str
    email: Optional[str] = None


class AdminPolicy:
    """Capability check: is this actor an administrator?"""

    def __init__(self, admin_emails: Iterable[str]):
        self.admin_emails = frozenset(e.strip().lower() for e in admin_emails if e and e.strip())

    def is_admin(self, actor: Optional[Actor]) -> bool:
        if actor is None or not actor.email:
            return False
        return actor.email.lower() in self.admin_emails

    def require_admin(self, actor: Optional[Actor]) -> Actor:
        if actor is None:
            raise Unauthorized()
        if not self.is_admin(actor):
            raise Forbidden("Admin only")
        return actor


def get_admin_policy() -> AdminPolicy:
    return AdminPolicy(settings.admin_emails)


def get_current_actor(
    x_user_id: Optional[str] = Header(None),
    x_user_email: Optional[str] = Header(None),
) -> Optional[Actor]:
    """Resolve the current actor, or None when unauthenticated."""
    if not x_user_id:
        return None
    return Actor(user_id=x_user_id, email=x_user_email)


def require_actor(actor: Optional[Actor] = Depends(get_current_actor)) -> Actor:
    if actor is None:
        raise Unauthorized()
    return actor
