"""Unit tests for listener/annotations.py - Ingress annotation lookups."""

import json

import pytest

from listener.annotations import (
    IngressAnnotations,
    default_404_action,
    uses_annotation,
)
from listener.errors import AnnotationResolutionError
from listener.models import FixedResponseAction, ForwardAction, RedirectAction

PREFIX = "alb.ingress.kubernetes.io"


class TestIngressAnnotations:
    """Tests for IngressAnnotations."""

    def test_certificate_and_policy(self):
        annotations = IngressAnnotations(
            {
                f"{PREFIX}/certificate-arn": " cert-1 ",
                f"{PREFIX}/ssl-policy": "ELBSecurityPolicy-TLS-1-2-2017-01",
            }
        )
        assert annotations.certificate_arn == "cert-1"
        assert annotations.ssl_policy == "ELBSecurityPolicy-TLS-1-2-2017-01"

    def test_missing_values_are_none(self):
        annotations = IngressAnnotations()
        assert annotations.certificate_arn is None
        assert annotations.ssl_policy is None

    def test_blank_value_is_none(self):
        annotations = IngressAnnotations({f"{PREFIX}/certificate-arn": "   "})
        assert annotations.certificate_arn is None

    def test_custom_prefix(self):
        annotations = IngressAnnotations(
            {"example.com/certificate-arn": "cert-1", f"{PREFIX}/certificate-arn": "x"},
            prefix="example.com",
        )
        assert annotations.certificate_arn == "cert-1"

    def test_get_action_fixed_response(self):
        document = {
            "Type": "fixed-response",
            "FixedResponseConfig": {
                "ContentType": "text/plain",
                "StatusCode": "503",
                "MessageBody": "maintenance",
            },
        }
        annotations = IngressAnnotations(
            {f"{PREFIX}/actions.maintenance": json.dumps(document)}
        )
        assert annotations.get_action("maintenance") == FixedResponseAction(
            status_code="503", content_type="text/plain", message_body="maintenance"
        )

    def test_get_action_redirect(self):
        document = {
            "Type": "redirect",
            "RedirectConfig": {"Protocol": "HTTPS", "Port": "443", "StatusCode": "HTTP_301"},
        }
        annotations = IngressAnnotations(
            {f"{PREFIX}/actions.ssl-redirect": json.dumps(document)}
        )
        action = annotations.get_action("ssl-redirect")
        assert isinstance(action, RedirectAction)
        assert action.protocol == "HTTPS"
        assert action.host == "#{host}"

    def test_get_action_404_is_builtin(self):
        annotations = IngressAnnotations()
        assert annotations.get_action("response-404") == default_404_action()

    def test_get_action_missing(self):
        annotations = IngressAnnotations()
        with pytest.raises(AnnotationResolutionError) as exc_info:
            annotations.get_action("maintenance")
        assert "maintenance" in str(exc_info.value)
        assert exc_info.value.kind == "AnnotationResolutionFailure"

    def test_get_action_invalid_json(self):
        annotations = IngressAnnotations({f"{PREFIX}/actions.broken": "{not json"})
        with pytest.raises(AnnotationResolutionError) as exc_info:
            annotations.get_action("broken")
        assert isinstance(exc_info.value.__cause__, json.JSONDecodeError)

    def test_get_action_not_an_object(self):
        annotations = IngressAnnotations({f"{PREFIX}/actions.list": "[1, 2]"})
        with pytest.raises(AnnotationResolutionError):
            annotations.get_action("list")

    def test_get_action_unknown_type(self):
        annotations = IngressAnnotations(
            {f"{PREFIX}/actions.odd": json.dumps({"Type": "teleport"})}
        )
        with pytest.raises(AnnotationResolutionError) as exc_info:
            annotations.get_action("odd")
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_get_action_forward(self):
        annotations = IngressAnnotations(
            {
                f"{PREFIX}/actions.legacy": json.dumps(
                    {"Type": "forward", "TargetGroupArn": "tg-legacy"}
                )
            }
        )
        assert annotations.get_action("legacy") == ForwardAction("tg-legacy")

    def test_action_names(self):
        annotations = IngressAnnotations(
            {
                f"{PREFIX}/actions.b": "{}",
                f"{PREFIX}/actions.a": "{}",
                f"{PREFIX}/ssl-policy": "p",
            }
        )
        assert annotations.action_names() == ["a", "b"]

    def test_equality(self):
        assert IngressAnnotations({"k": "v"}) == IngressAnnotations({"k": "v"})
        assert IngressAnnotations({"k": "v"}) != IngressAnnotations({"k": "w"})


class TestHelpers:
    """Tests for module helpers."""

    def test_default_404_action(self):
        action = default_404_action()
        assert action.status_code == "404"
        assert action.content_type == "text/plain"

    @pytest.mark.parametrize(
        "port,expected",
        [("use-annotation", True), ("http", False), (80, False)],
    )
    def test_uses_annotation(self, port, expected):
        assert uses_annotation(port) is expected
