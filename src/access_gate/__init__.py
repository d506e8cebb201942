"""
access-gate — session access and availability gating.

Maintenance mode, role gates, plan tiers, usage quotas and chat request
dispatch for an AI chat service backed by a REST + realtime data service.
"""

from access_gate.client import AccessGate, AsyncAccessGate
from access_gate.dispatch import ChatRequestDispatcher, FailureNotice
from access_gate.errors import (
    AccessGateError,
    ConnectionError,
    EmptyResponseError,
    LookupFailure,
    NotFoundError,
    TransportError,
)
from access_gate.guards import DeniedView, LoadingView, Permissions, RoleGate
from access_gate.maintenance import MaintenanceMonitor, should_redirect
from access_gate.models.envelope import ChatRequest, ChatRequestEnvelope
from access_gate.models.plan import PlanAccess, PlanTier
from access_gate.models.session import Session
from access_gate.models.usage import Severity, UsageSnapshot
from access_gate.plans import PlanClassifier, classify_plan
from access_gate.quota import describe_usage, evaluate_quota

__version__ = "0.1.0"
__all__ = [
    "AccessGate",
    "AsyncAccessGate",
    "ChatRequestDispatcher",
    "FailureNotice",
    "AccessGateError",
    "ConnectionError",
    "EmptyResponseError",
    "LookupFailure",
    "NotFoundError",
    "TransportError",
    "DeniedView",
    "LoadingView",
    "Permissions",
    "RoleGate",
    "MaintenanceMonitor",
    "should_redirect",
    "ChatRequest",
    "ChatRequestEnvelope",
    "PlanAccess",
    "PlanTier",
    "Session",
    "Severity",
    "UsageSnapshot",
    "PlanClassifier",
    "classify_plan",
    "describe_usage",
    "evaluate_quota",
]
