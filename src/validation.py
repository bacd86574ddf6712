"""
Request Validation - JSON schema validation of listener request documents.

A request document describes one listener: the load balancer it belongs to,
the ingress driving it, its port and the resolved target groups.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from jsonschema import Draft7Validator, ValidationError

from listener.annotations import DEFAULT_ANNOTATION_PREFIX, IngressAnnotations
from listener.models import (
    Ingress,
    IngressBackend,
    Listener,
    ListenerPort,
    ReconcileRequest,
)

logger = logging.getLogger(__name__)

_SERVICE_PORT = {"type": ["integer", "string"], "minLength": 1}

_BACKEND = {
    "type": "object",
    "required": ["serviceName", "servicePort"],
    "properties": {
        "serviceName": {"type": "string", "minLength": 1},
        "servicePort": _SERVICE_PORT,
    },
}

REQUEST_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["loadBalancerArn", "ingress", "port"],
    "properties": {
        "loadBalancerArn": {"type": "string", "minLength": 1},
        "ingress": {
            "type": "object",
            "required": ["name"],
            "properties": {
                "name": {"type": "string", "minLength": 1},
                "namespace": {"type": "string"},
                "annotations": {
                    "type": "object",
                    "additionalProperties": {"type": "string"},
                },
                "spec": {
                    "type": "object",
                    "properties": {
                        "backend": _BACKEND,
                        "rules": {"type": "array"},
                    },
                },
            },
        },
        "port": {
            "type": "object",
            "required": ["port", "scheme"],
            "properties": {
                "port": {"type": "integer", "minimum": 1, "maximum": 65535},
                "scheme": {"enum": ["HTTP", "HTTPS"]},
            },
        },
        "targetGroups": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["serviceName", "servicePort", "targetGroupArn"],
                "properties": {
                    "serviceName": {"type": "string", "minLength": 1},
                    "servicePort": _SERVICE_PORT,
                    "targetGroupArn": {"type": "string", "minLength": 1},
                },
            },
        },
    },
}


def validate_spec_against_schema(
    spec: Dict[str, Any], schema: Dict[str, Any]
) -> Tuple[bool, Optional[str]]:
    """
    Validate a document against a JSON Schema.

    Args:
        spec: The document to validate
        schema: The Draft 7 JSON Schema to validate against

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        validator = Draft7Validator(schema)
        errors = sorted(
            validator.iter_errors(spec),
            key=lambda e: [str(p) for p in e.absolute_path],
        )

        if not errors:
            return True, None

        error_messages = []
        for error in errors:
            path = ".".join(str(p) for p in error.absolute_path) or "(root)"
            error_messages.append(f"{path}: {error.message}")

        return False, "; ".join(error_messages)

    except ValidationError as e:
        return False, f"Validation error: {str(e)}"


def load_request_document(
    document: Dict[str, Any],
    annotation_prefix: str = DEFAULT_ANNOTATION_PREFIX,
    instance: Optional[Listener] = None,
) -> ReconcileRequest:
    """
    Validate a request document and turn it into a ReconcileRequest.

    Args:
        document: Parsed YAML or JSON request document.
        annotation_prefix: Prefix of the ALB annotations.
        instance: The live listener, if one exists.

    Returns:
        The ReconcileRequest.

    Raises:
        ValueError: If the document does not match REQUEST_SCHEMA.
    """
    is_valid, error = validate_spec_against_schema(document, REQUEST_SCHEMA)
    if not is_valid:
        raise ValueError(f"Invalid listener request: {error}")

    ingress_doc = document["ingress"]
    target_groups = {}
    for entry in document.get("targetGroups", []):
        backend = IngressBackend.from_dict(entry)
        if backend in target_groups:
            logger.warning(
                f"Duplicate target group for {backend.service_name}:"
                f"{backend.service_port}, keeping the last one"
            )
        target_groups[backend] = entry["targetGroupArn"]

    return ReconcileRequest(
        load_balancer_arn=document["loadBalancerArn"],
        ingress=Ingress.from_dict(ingress_doc),
        annotations=IngressAnnotations(
            ingress_doc.get("annotations"), prefix=annotation_prefix
        ),
        port=ListenerPort(
            port=document["port"]["port"], scheme=document["port"]["scheme"]
        ),
        target_groups=target_groups,
        instance=instance,
    )
