"""Request dependencies.

Authentication happens upstream; the identity provider forwards the
authenticated user id and role as trusted headers.
"""

from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class Requester:
    user_id: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def current_requester(
    x_user_id: str = Header(default=""),
    x_user_role: str = Header(default="user"),
) -> Requester:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    return Requester(user_id=x_user_id, role=(x_user_role or "user").lower())


def admin_requester(requester: Requester = Depends(current_requester)) -> Requester:
    if not requester.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return requester
