"""Pytest configuration and fixtures."""

import pytest
from unittest.mock import AsyncMock

from listener.annotations import IngressAnnotations
from listener.models import (
    ForwardAction,
    Ingress,
    IngressBackend,
    Listener,
    ListenerPort,
    ListenerProtocol,
    ReconcileRequest,
)

LB_ARN = (
    "arn:aws:elasticloadbalancing:us-east-1:123456789012:"
    "loadbalancer/app/my-alb/50dc6c495c0c9188"
)
LISTENER_ARN = (
    "arn:aws:elasticloadbalancing:us-east-1:123456789012:"
    "listener/app/my-alb/50dc6c495c0c9188/f2f7dc8efc522ab2"
)


@pytest.fixture
def backend():
    """Default backend svcA:8080."""
    return IngressBackend(service_name="svcA", service_port=8080)


@pytest.fixture
def target_groups(backend):
    """Target group map resolving the default backend."""
    return {backend: "tg-1"}


@pytest.fixture
def ingress(backend):
    """Ingress with a default backend and no rules."""
    return Ingress(name="web", namespace="default", backend=backend)


@pytest.fixture
def make_request(ingress, target_groups):
    """Factory for ReconcileRequest with sensible defaults."""

    def _make(
        scheme=ListenerProtocol.HTTP,
        port=80,
        annotations=None,
        instance=None,
        **overrides,
    ):
        params = dict(
            load_balancer_arn=LB_ARN,
            ingress=ingress,
            annotations=IngressAnnotations(annotations or {}),
            port=ListenerPort(port=port, scheme=scheme),
            target_groups=target_groups,
            instance=instance,
        )
        params.update(overrides)
        return ReconcileRequest(**params)

    return _make


@pytest.fixture
def http_listener():
    """Live HTTP:80 listener forwarding to tg-1."""
    return Listener(
        arn=LISTENER_ARN,
        port=80,
        protocol=ListenerProtocol.HTTP,
        default_actions=(ForwardAction(target_group_arn="tg-1"),),
        load_balancer_arn=LB_ARN,
    )


@pytest.fixture
def mock_cloud():
    """Mock ListenerAPI."""
    cloud = AsyncMock()
    cloud.create_listener = AsyncMock()
    cloud.modify_listener = AsyncMock()
    cloud.describe_listener = AsyncMock(return_value=None)
    return cloud


@pytest.fixture
def mock_rules():
    """Mock RuleReconciler."""
    rules = AsyncMock()
    rules.reconcile = AsyncMock(return_value=None)
    return rules
