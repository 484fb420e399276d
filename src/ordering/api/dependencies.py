"""Request-scoped dependencies.

Authentication happens upstream; the gateway in front of this service
forwards the authenticated user's id and role as headers.
"""

from dataclasses import dataclass

from fastapi import Header, HTTPException

from ordering.utils.authorization import is_admin
from ordering.utils.logging import bind_request_context


@dataclass(frozen=True)
class Principal:
    user_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return is_admin(self.role)


async def get_principal(
    x_user_id: str | None = Header(default=None),
    x_user_role: str = Header(default="customer"),
) -> Principal:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")

    bind_request_context(user_id=x_user_id, role=x_user_role)
    return Principal(user_id=x_user_id, role=x_user_role)
