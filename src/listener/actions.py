"""
Default action resolution for a listener.

Turns the ingress default backend into the ordered list of routing actions
the listener serves when no rule matches.
"""

import logging
from typing import Mapping, Optional, Tuple

from listener.annotations import (
    DEFAULT_404_SERVICE_NAME,
    USE_ANNOTATION_PORT,
    IngressAnnotations,
    uses_annotation,
)
from listener.errors import UnresolvedBackendError
from listener.models import ForwardAction, IngressBackend, RoutingAction

logger = logging.getLogger(__name__)


def default_404_backend() -> IngressBackend:
    """Backend substituted when the ingress declares no default backend."""
    return IngressBackend(
        service_name=DEFAULT_404_SERVICE_NAME, service_port=USE_ANNOTATION_PORT
    )


def resolve_default_actions(
    backend: Optional[IngressBackend],
    annotations: IngressAnnotations,
    target_groups: Mapping[IngressBackend, str],
) -> Tuple[RoutingAction, ...]:
    """
    Resolve the default actions for a listener.

    Args:
        backend: The ingress default backend, or None.
        annotations: Annotation lookups for custom actions.
        target_groups: Target group arn per backend, resolved beforehand.

    Returns:
        A non-empty tuple of routing actions.

    Raises:
        AnnotationResolutionError: If a custom action cannot be resolved.
        UnresolvedBackendError: If the backend has no target group.
    """
    if backend is None:
        backend = default_404_backend()

    if uses_annotation(backend.service_port):
        return (annotations.get_action(backend.service_name),)

    target_group_arn = target_groups.get(backend)
    if not target_group_arn:
        # Target groups are resolved before listeners; a miss is an ordering bug
        raise UnresolvedBackendError(backend.service_name, backend.service_port)

    logger.debug(
        f"Default backend {backend.service_name}:{backend.service_port} "
        f"forwards to {target_group_arn}"
    )
    return (ForwardAction(target_group_arn=target_group_arn),)
