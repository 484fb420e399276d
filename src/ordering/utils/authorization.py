"""Owner-or-admin checks applied by command handlers and queries.

Identity is issued elsewhere; every operation receives the acting user's id
and role and decides here whether that actor may proceed.
"""

from ordering.exceptions import NotAuthorized

ADMIN_ROLE = "admin"


def is_admin(actor_role: str | None) -> bool:
    return actor_role == ADMIN_ROLE


def ensure_admin(actor_role: str | None, action: str) -> None:
    if not is_admin(actor_role):
        raise NotAuthorized(action)


def ensure_owner_or_admin(owner_id, actor_id, actor_role: str | None, action: str) -> None:
    if is_admin(actor_role):
        return
    if actor_id is None or str(owner_id) != str(actor_id):
        raise NotAuthorized(action)
