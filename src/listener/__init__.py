"""
Listener reconciliation core.

Computes the desired state of one ELBv2 listener from an ingress and its
annotations, detects drift against the live listener, and converges it.
"""

from listener.actions import resolve_default_actions
from listener.annotations import IngressAnnotations
from listener.builder import build_listener_config
from listener.drift import FieldDrift, diff_listener, needs_update
from listener.errors import (
    AnnotationResolutionError,
    ListenerCreateError,
    ListenerReconcileError,
    ListenerUpdateError,
    RuleReconciliationError,
    UnresolvedBackendError,
)
from listener.models import (
    AuthenticateAction,
    Certificate,
    FixedResponseAction,
    ForwardAction,
    Ingress,
    IngressBackend,
    Listener,
    ListenerConfig,
    ListenerPort,
    ListenerProtocol,
    ReconcileRequest,
    RedirectAction,
    RoutingAction,
    UnmanagedAction,
)

__all__ = [
    "resolve_default_actions",
    "IngressAnnotations",
    "build_listener_config",
    "FieldDrift",
    "diff_listener",
    "needs_update",
    "AnnotationResolutionError",
    "ListenerCreateError",
    "ListenerReconcileError",
    "ListenerUpdateError",
    "RuleReconciliationError",
    "UnresolvedBackendError",
    "AuthenticateAction",
    "Certificate",
    "FixedResponseAction",
    "ForwardAction",
    "Ingress",
    "IngressBackend",
    "Listener",
    "ListenerConfig",
    "ListenerPort",
    "ListenerProtocol",
    "ReconcileRequest",
    "RedirectAction",
    "RoutingAction",
    "UnmanagedAction",
]
