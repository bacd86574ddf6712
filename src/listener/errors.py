"""
Listener reconciliation errors.

Every failure raised by the listener core derives from ListenerReconcileError
and carries a ``kind`` naming the failure class. Provider errors are chained
as ``__cause__``. Nothing here is retried.
"""

from typing import Optional


class ListenerReconcileError(Exception):
    """Base class for listener reconciliation failures."""

    kind: str = "ListenerReconcileFailure"

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage

    def __str__(self) -> str:
        if self.stage:
            return f"[{self.stage}] {self.message}"
        return self.message


class AnnotationResolutionError(ListenerReconcileError):
    """A custom action could not be resolved from the ingress annotations."""

    kind = "AnnotationResolutionFailure"


class UnresolvedBackendError(ListenerReconcileError):
    """The default backend has no entry in the target group map."""

    kind = "UnresolvedBackend"

    def __init__(self, service_name: str, service_port, stage: Optional[str] = None):
        super().__init__(
            f"unable to find targetGroup for backend {service_name}:{service_port}",
            stage=stage,
        )
        self.service_name = service_name
        self.service_port = service_port


class ListenerCreateError(ListenerReconcileError):
    """The provider rejected the create-listener call."""

    kind = "CreateFailed"


class ListenerUpdateError(ListenerReconcileError):
    """The provider rejected the modify-listener call."""

    kind = "UpdateFailed"


class RuleReconciliationError(ListenerReconcileError):
    """Rule reconciliation failed after the listener itself converged."""

    kind = "RuleReconciliationFailed"
