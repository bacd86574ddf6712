"""Desired listener configuration."""

from listener.actions import resolve_default_actions
from listener.errors import ListenerReconcileError
from listener.models import Certificate, ListenerConfig, ListenerProtocol, ReconcileRequest

BUILD_STAGE = "build"


def build_listener_config(request: ReconcileRequest) -> ListenerConfig:
    """
    Compute the desired configuration for the listener in ``request``.

    Pure: no I/O, and equal requests always yield equal configs. TLS fields
    are only populated for HTTPS listeners.

    Raises:
        ListenerReconcileError: Action resolution failed; the same error
            is re-raised with ``stage`` set to ``"build"``.
    """
    protocol = request.port.scheme
    certificates = ()
    ssl_policy = None

    if protocol == ListenerProtocol.HTTPS:
        certificate_arn = request.annotations.certificate_arn
        if certificate_arn is not None:
            certificates = (Certificate(arn=certificate_arn, is_default=True),)
        ssl_policy = request.annotations.ssl_policy

    try:
        actions = resolve_default_actions(
            request.ingress.backend, request.annotations, request.target_groups
        )
    except ListenerReconcileError as e:
        e.stage = BUILD_STAGE
        raise

    return ListenerConfig(
        port=request.port.port,
        protocol=protocol,
        default_actions=actions,
        ssl_policy=ssl_policy,
        certificates=certificates,
    )
