from dataclasses import dataclass

from taskmarket.core.errors import Unauthorized
from taskmarket.models.schemas import User


@dataclass(frozen=True)
class Session:
    """The authenticated caller for one request. Built per request, never stored globally."""
    user: User
    token: str

    @property
    def user_id(self) -> str:
        return self.user.id

    @property
    def is_admin(self) -> bool:
        return self.user.role == "admin"


def require_role(session: Session, *roles: str) -> None:
    if session.user.role not in roles:
        allowed = " or ".join(r.replace("_", " ") for r in roles)
        raise Unauthorized(f"Only {allowed} accounts can do this")
