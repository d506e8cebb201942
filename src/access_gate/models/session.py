"""
Session models: read-only view of the auth collaborator's state.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict


class Session(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: Optional[str] = None
    authenticated: bool = False
    is_admin: bool = False
    role: str = "user"          # "user" | "pro" | "admin"
    resolved: bool = True       # False while the auth state is still loading

    @classmethod
    def loading(cls) -> "Session":
        return cls(resolved=False)

    @classmethod
    def anonymous(cls) -> "Session":
        return cls()

    @classmethod
    def for_user(cls, user_id: str, role: str = "user") -> "Session":
        return cls(user_id=user_id, authenticated=True, is_admin=role == "admin", role=role)
