"""
Route guarding for the application's pages.

Order of checks for a path: maintenance page, sign-in redirect, role gate.
Navigation itself is left to the caller; this module only decides.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from access_gate.guards import DeniedView, GateState, Permissions, RoleGate
from access_gate.maintenance import MaintenanceMonitor
from access_gate.models.maintenance import MaintenanceRecord
from access_gate.models.session import Session

SIGN_IN_PATH = "/auth"


class Route(BaseModel):
    model_config = ConfigDict(frozen=True)

    pattern: str
    requires_auth: bool = True
    required_role: Optional[str] = None

    def matches(self, path: str) -> bool:
        want = [p for p in self.pattern.split("/") if p]
        have = [p for p in path.split("?")[0].split("/") if p]
        if len(want) != len(have):
            return False
        return all(w.startswith("{") or w == h for w, h in zip(want, have))


ROUTES: tuple[Route, ...] = (
    Route(pattern=SIGN_IN_PATH, requires_auth=False),
    Route(pattern="/"),
    Route(pattern="/preferences"),
    Route(pattern="/admin/stats", required_role="admin"),
    Route(pattern="/attack-plans", required_role="pro"),
    Route(pattern="/chat"),
    Route(pattern="/chat/{session_id}"),
)


def match_route(path: str, routes: tuple[Route, ...] = ROUTES) -> Optional[Route]:
    for route in routes:
        if route.matches(path):
            return route
    return None


class RouteAction(str, Enum):
    LOADING = "loading"
    ALLOW = "allow"
    REDIRECT = "redirect"
    MAINTENANCE = "maintenance"
    DENIED = "denied"
    NOT_FOUND = "not_found"


class RouteDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: RouteAction
    redirect_to: Optional[str] = None
    maintenance: Optional[MaintenanceRecord] = None
    denied: Optional[DeniedView] = None


def protect(session: Session, redirect_to: str = SIGN_IN_PATH) -> RouteDecision:
    """Signed-in users pass; anonymous ones are sent to redirect_to."""
    if not session.resolved:
        return RouteDecision(action=RouteAction.LOADING)
    if not session.authenticated:
        return RouteDecision(action=RouteAction.REDIRECT, redirect_to=redirect_to)
    return RouteDecision(action=RouteAction.ALLOW)


def resolve_route(
    path: str,
    session: Session,
    permissions: Permissions,
    maintenance: MaintenanceMonitor,
    routes: tuple[Route, ...] = ROUTES,
) -> RouteDecision:
    if maintenance.loading:
        return RouteDecision(action=RouteAction.LOADING)
    if maintenance.should_redirect and maintenance.record is not None:
        return RouteDecision(action=RouteAction.MAINTENANCE, maintenance=maintenance.record)

    route = match_route(path, routes)
    if route is None:
        return RouteDecision(action=RouteAction.NOT_FOUND)

    if route.requires_auth:
        decision = protect(session)
        if decision.action is not RouteAction.ALLOW:
            return decision

    if route.required_role:
        gate: RoleGate[Any] = RoleGate(route.required_role)
        state = gate.evaluate(permissions)
        if state is GateState.CHECKING:
            return RouteDecision(action=RouteAction.LOADING)
        if state is GateState.DENIED:
            view = gate.render(permissions, None)
            return RouteDecision(action=RouteAction.DENIED, denied=view)

    return RouteDecision(action=RouteAction.ALLOW)
