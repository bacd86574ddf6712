"""
Ingress annotation lookups used by the listener reconciler.

Annotations are read lazily: a malformed custom action only fails when a
listener actually asks for it.
"""

import json
import logging
from typing import Dict, Mapping, Optional

from listener.errors import AnnotationResolutionError
from listener.models import FixedResponseAction, RoutingAction, action_from_api

logger = logging.getLogger(__name__)

DEFAULT_ANNOTATION_PREFIX = "alb.ingress.kubernetes.io"

# Backend port name that routes to an annotation-defined action
USE_ANNOTATION_PORT = "use-annotation"

# Built-in backend used when the ingress declares no default backend
DEFAULT_404_SERVICE_NAME = "response-404"


def default_404_action() -> FixedResponseAction:
    """The action served when no route is configured."""
    return FixedResponseAction(status_code="404", content_type="text/plain")


def uses_annotation(service_port) -> bool:
    """Whether a backend port refers to an annotation-defined action."""
    return str(service_port) == USE_ANNOTATION_PORT


class IngressAnnotations:
    """Typed view over the ALB annotations of one ingress."""

    def __init__(
        self,
        annotations: Optional[Mapping[str, str]] = None,
        prefix: str = DEFAULT_ANNOTATION_PREFIX,
    ):
        self._annotations: Dict[str, str] = dict(annotations or {})
        self.prefix = prefix

    def _get(self, key: str) -> Optional[str]:
        value = self._annotations.get(f"{self.prefix}/{key}")
        if value is None:
            return None
        value = value.strip()
        return value or None

    @property
    def certificate_arn(self) -> Optional[str]:
        return self._get("certificate-arn")

    @property
    def ssl_policy(self) -> Optional[str]:
        return self._get("ssl-policy")

    def action_names(self):
        """Names of all annotation-defined actions."""
        marker = f"{self.prefix}/actions."
        return sorted(k[len(marker):] for k in self._annotations if k.startswith(marker))

    def get_action(self, service_name: str) -> RoutingAction:
        """
        Resolve the custom action declared for a backend service name.

        Args:
            service_name: The backend's service name.

        Returns:
            The parsed RoutingAction.

        Raises:
            AnnotationResolutionError: If no such action is declared or its
                document cannot be parsed.
        """
        if service_name == DEFAULT_404_SERVICE_NAME:
            return default_404_action()

        raw = self._get(f"actions.{service_name}")
        if raw is None:
            raise AnnotationResolutionError(
                f"backend with `servicePort: {USE_ANNOTATION_PORT}` was configured "
                f"with `serviceName: {service_name}` but an action annotation for "
                f"{service_name} is not set"
            )

        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            raise AnnotationResolutionError(
                f"unable to parse action annotation for {service_name}: {e}"
            ) from e

        if not isinstance(document, dict):
            raise AnnotationResolutionError(
                f"action annotation for {service_name} must be a JSON object"
            )

        try:
            action = action_from_api(document)
        except ValueError as e:
            raise AnnotationResolutionError(
                f"invalid action annotation for {service_name}: {e}"
            ) from e

        logger.debug(f"Resolved {action.type} action for {service_name}")
        return action

    def __eq__(self, other) -> bool:
        if not isinstance(other, IngressAnnotations):
            return NotImplemented
        return self.prefix == other.prefix and self._annotations == other._annotations

    def __repr__(self) -> str:
        return f"IngressAnnotations(prefix={self.prefix!r}, keys={sorted(self._annotations)})"
