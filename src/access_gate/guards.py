"""
Role gate: conditionally hands back protected content based on the
session's capability set.

The gate is pure view selection: it never navigates and never raises.
Views are opaque to it; callers pass whatever their renderer understands.
"""

from enum import Enum
from typing import Any, Generic, Iterable, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

from access_gate.models.session import Session

T = TypeVar("T")

ROLE_LADDER = ("user", "pro", "admin")

DENIAL_PREFIX = "You don't have permission to access this page."

# Extra copy appended per missing capability; unlisted capabilities get the prefix only.
DENIAL_COPY: dict[str, str] = {
    "pro": "Upgrade to Pro to access Attack Plans.",
    "admin": "Admin access required.",
}


def capabilities_for_role(role: Optional[str]) -> frozenset[str]:
    """admin ⊇ pro ⊇ user. Unknown roles get nothing."""
    if role not in ROLE_LADDER:
        return frozenset()
    return frozenset(ROLE_LADDER[: ROLE_LADDER.index(role) + 1])


def denial_message(capability: str) -> str:
    extra = DENIAL_COPY.get(capability)
    return f"{DENIAL_PREFIX} {extra}" if extra else DENIAL_PREFIX


class Permissions(BaseModel):
    model_config = ConfigDict(frozen=True)

    capabilities: frozenset[str] = Field(default_factory=frozenset)
    loading: bool = False

    @classmethod
    def pending(cls) -> "Permissions":
        return cls(loading=True)

    @classmethod
    def for_session(cls, session: Session) -> "Permissions":
        if not session.resolved:
            return cls.pending()
        if not session.authenticated:
            return cls()
        role = "admin" if session.is_admin else session.role
        return cls(capabilities=capabilities_for_role(role))

    @classmethod
    def of(cls, capabilities: Iterable[str]) -> "Permissions":
        return cls(capabilities=frozenset(capabilities))

    def has(self, capability: str) -> bool:
        return capability in self.capabilities

    def satisfies(self, required: Iterable[str]) -> bool:
        return self.capabilities >= frozenset(required)


class GateState(str, Enum):
    CHECKING = "checking"
    GRANTED = "granted"
    DENIED = "denied"


class LoadingView(BaseModel):
    """Neutral placeholder while permissions resolve."""

    model_config = ConfigDict(frozen=True)

    label: str = "Loading..."


class DeniedView(BaseModel):
    model_config = ConfigDict(frozen=True)

    required: str
    message: str


class RoleGate(Generic[T]):
    def __init__(self, required: str, fallback: Optional[Any] = None):
        self.required = required
        self.fallback = fallback

    def evaluate(self, permissions: Permissions) -> GateState:
        if permissions.loading:
            return GateState.CHECKING
        if permissions.has(self.required):
            return GateState.GRANTED
        return GateState.DENIED

    def render(self, permissions: Permissions, children: T) -> Union[T, Any, LoadingView, DeniedView]:
        state = self.evaluate(permissions)
        if state is GateState.CHECKING:
            return LoadingView()
        if state is GateState.DENIED:
            if self.fallback is not None:
                return self.fallback
            return DeniedView(required=self.required, message=denial_message(self.required))
        return children
