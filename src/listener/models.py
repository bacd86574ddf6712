"""
Listener data model.

Frozen dataclasses describing the desired and observed state of an ELBv2
listener, the routing actions attached to it, and the request bundle handed
to the listener reconciler. Each type renders and parses the ELBv2 API shape
so the cloud client can pass them straight to boto3.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Tuple, Union

if TYPE_CHECKING:
    from listener.annotations import IngressAnnotations


class ListenerProtocol(str, Enum):
    """Listener transport protocols handled by the reconciler."""

    HTTP = "HTTP"
    HTTPS = "HTTPS"


@dataclass(frozen=True)
class ListenerPort:
    """Port descriptor for one listener: port number plus scheme."""

    port: int
    scheme: ListenerProtocol

    def __post_init__(self):
        if not 1 <= self.port <= 65535:
            raise ValueError(f"Listener port must be in 1..65535, got {self.port}")
        if not isinstance(self.scheme, ListenerProtocol):
            object.__setattr__(self, "scheme", ListenerProtocol(self.scheme))


@dataclass(frozen=True)
class IngressBackend:
    """Reference to a backend service; the key of the target group map."""

    service_name: str
    service_port: Union[int, str]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IngressBackend":
        port = data["servicePort"]
        if isinstance(port, str) and port.isdigit():
            port = int(port)
        return cls(service_name=data["serviceName"], service_port=port)


@dataclass(frozen=True)
class Ingress:
    """Route specification; rules are opaque to the listener core."""

    name: str
    namespace: str = "default"
    backend: Optional[IngressBackend] = None
    rules: Tuple[Dict[str, Any], ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Ingress":
        spec = data.get("spec") or {}
        backend = spec.get("backend")
        return cls(
            name=data["name"],
            namespace=data.get("namespace", "default"),
            backend=IngressBackend.from_dict(backend) if backend else None,
            rules=tuple(spec.get("rules") or ()),
        )


# ==================== Routing actions ====================


@dataclass(frozen=True)
class ForwardAction:
    """Forward traffic into a target group."""

    target_group_arn: str

    type = "forward"

    def to_api(self) -> Dict[str, Any]:
        return {"Type": self.type, "TargetGroupArn": self.target_group_arn}


@dataclass(frozen=True)
class FixedResponseAction:
    """Answer with a static response."""

    status_code: str
    content_type: Optional[str] = None
    message_body: Optional[str] = None

    type = "fixed-response"

    def to_api(self) -> Dict[str, Any]:
        config: Dict[str, Any] = {"StatusCode": self.status_code}
        if self.content_type is not None:
            config["ContentType"] = self.content_type
        if self.message_body is not None:
            config["MessageBody"] = self.message_body
        return {"Type": self.type, "FixedResponseConfig": config}


@dataclass(frozen=True)
class RedirectAction:
    """
    Redirect to another URL.

    Unset components default to the ELBv2 placeholders, which is also what
    the provider reports back for them.
    """

    status_code: str
    protocol: str = "#{protocol}"
    port: str = "#{port}"
    host: str = "#{host}"
    path: str = "/#{path}"
    query: str = "#{query}"

    type = "redirect"

    def to_api(self) -> Dict[str, Any]:
        return {
            "Type": self.type,
            "RedirectConfig": {
                "Protocol": self.protocol,
                "Port": self.port,
                "Host": self.host,
                "Path": self.path,
                "Query": self.query,
                "StatusCode": self.status_code,
            },
        }


def _freeze(mapping: Mapping[str, Any]) -> Tuple[Tuple[str, Any], ...]:
    return tuple(
        sorted(
            (key, _freeze(value) if isinstance(value, Mapping) else value)
            for key, value in mapping.items()
        )
    )


def _thaw(pairs: Tuple[Tuple[str, Any], ...]) -> Dict[str, Any]:
    return {
        key: _thaw(value) if isinstance(value, tuple) else value
        for key, value in pairs
    }


@dataclass(frozen=True)
class AuthenticateAction:
    """
    Authenticate through an OIDC provider or a Cognito user pool.

    The config may be given as a mapping; it is stored as sorted key/value
    pairs so the action stays hashable. Settings ELBv2 defaults are filled
    in up front, matching what the provider reports back. The OIDC client
    secret is never reported back, so it is kept out of comparisons.
    """

    provider: str
    config: Tuple[Tuple[str, Any], ...] = ()
    client_secret: Optional[str] = field(default=None, compare=False, repr=False)

    _CONFIG_KEYS = {
        "oidc": "AuthenticateOidcConfig",
        "cognito": "AuthenticateCognitoConfig",
    }
    _PROVIDER_DEFAULTS = {
        "Scope": "openid",
        "SessionCookieName": "AWSELBAuthSessionCookie",
        "SessionTimeout": 604800,
        "OnUnauthenticatedRequest": "authenticate",
    }

    def __post_init__(self):
        if self.provider not in self._CONFIG_KEYS:
            raise ValueError(f"Unknown authenticate provider: {self.provider}")
        config = dict(self._PROVIDER_DEFAULTS)
        if isinstance(self.config, tuple):
            config.update(_thaw(self.config))
        else:
            config.update(self.config)
        secret = config.pop("ClientSecret", None)
        config.pop("UseExistingClientSecret", None)
        if self.client_secret is None and secret is not None:
            object.__setattr__(self, "client_secret", secret)
        object.__setattr__(self, "config", _freeze(config))

    @property
    def type(self) -> str:
        return f"authenticate-{self.provider}"

    def settings(self) -> Dict[str, Any]:
        """The provider config as a fresh dict, without the client secret."""
        return _thaw(self.config)

    def to_api(self) -> Dict[str, Any]:
        config = self.settings()
        if self.client_secret is not None:
            config["ClientSecret"] = self.client_secret
        elif self.provider == "oidc":
            config["UseExistingClientSecret"] = True
        return {"Type": self.type, self._CONFIG_KEYS[self.provider]: config}


@dataclass(frozen=True)
class UnmanagedAction:
    """
    A live action the reconciler cannot express, such as a weighted forward.

    Kept as its canonical JSON document; it never equals a desired action,
    so a listener carrying one always shows drift.
    """

    type: str
    document: str

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "UnmanagedAction":
        data = {k: v for k, v in data.items() if k != "Order"}
        return cls(
            type=str(data.get("Type")),
            document=json.dumps(data, sort_keys=True, default=str),
        )

    def to_api(self) -> Dict[str, Any]:
        return json.loads(self.document)


RoutingAction = Union[
    ForwardAction, FixedResponseAction, RedirectAction, AuthenticateAction, UnmanagedAction
]


def action_from_api(data: Dict[str, Any]) -> RoutingAction:
    """
    Parse an ELBv2 action document into a RoutingAction.

    ``Order`` is ignored. A forward reported through ``ForwardConfig`` with a
    single target group is read as a plain forward.

    Raises:
        ValueError: If the action type is unknown, its config is missing, or
            it forwards to more than one target group.
    """
    action_type = data.get("Type")
    if action_type == ForwardAction.type:
        groups = (data.get("ForwardConfig") or {}).get("TargetGroups") or []
        if len(groups) > 1:
            raise ValueError("weighted forward actions are not supported")
        arn = data.get("TargetGroupArn")
        if not arn and groups:
            arn = groups[0].get("TargetGroupArn")
        if not arn:
            raise ValueError("forward action requires TargetGroupArn")
        return ForwardAction(target_group_arn=arn)

    if action_type == FixedResponseAction.type:
        config = data.get("FixedResponseConfig") or {}
        if "StatusCode" not in config:
            raise ValueError("fixed-response action requires FixedResponseConfig.StatusCode")
        return FixedResponseAction(
            status_code=str(config["StatusCode"]),
            content_type=config.get("ContentType"),
            message_body=config.get("MessageBody"),
        )

    if action_type == RedirectAction.type:
        config = data.get("RedirectConfig") or {}
        if "StatusCode" not in config:
            raise ValueError("redirect action requires RedirectConfig.StatusCode")
        defaults = RedirectAction(status_code=config["StatusCode"])
        return RedirectAction(
            status_code=config["StatusCode"],
            protocol=config.get("Protocol", defaults.protocol),
            port=str(config.get("Port", defaults.port)),
            host=config.get("Host", defaults.host),
            path=config.get("Path", defaults.path),
            query=config.get("Query", defaults.query),
        )

    for provider, config_key in AuthenticateAction._CONFIG_KEYS.items():
        if action_type == f"authenticate-{provider}":
            if config_key not in data:
                raise ValueError(f"{action_type} action requires {config_key}")
            return AuthenticateAction(provider=provider, config=dict(data[config_key]))

    raise ValueError(f"Unknown action type: {action_type!r}")


def observed_action_from_api(data: Dict[str, Any]) -> RoutingAction:
    """
    Parse an action reported on a live listener.

    Shapes the model cannot express are kept as an UnmanagedAction so a
    valid listener always parses and simply shows drift.
    """
    try:
        return action_from_api(data)
    except ValueError:
        return UnmanagedAction.from_api(data)


# ==================== Listener state ====================


@dataclass(frozen=True)
class Certificate:
    """TLS certificate bound to a listener."""

    arn: str
    is_default: bool = False

    def to_api(self) -> Dict[str, Any]:
        return {"CertificateArn": self.arn, "IsDefault": self.is_default}


@dataclass(frozen=True)
class ListenerConfig:
    """Desired state of a listener, built fresh on every reconciliation."""

    port: int
    protocol: ListenerProtocol
    default_actions: Tuple[RoutingAction, ...]
    ssl_policy: Optional[str] = None
    certificates: Tuple[Certificate, ...] = ()

    def __post_init__(self):
        if not self.default_actions:
            raise ValueError("A listener needs at least one default action")
        defaults = [c for c in self.certificates if c.is_default]
        if len(defaults) > 1:
            raise ValueError("At most one certificate may be marked default")

    def to_api(self) -> Dict[str, Any]:
        """Keyword arguments shared by CreateListener and ModifyListener."""
        params: Dict[str, Any] = {
            "Port": self.port,
            "Protocol": self.protocol.value,
            "DefaultActions": [action.to_api() for action in self.default_actions],
        }
        if self.certificates:
            params["Certificates"] = [cert.to_api() for cert in self.certificates]
        if self.ssl_policy is not None:
            params["SslPolicy"] = self.ssl_policy
        return params


@dataclass(frozen=True)
class Listener:
    """A live listener as reported by the provider."""

    arn: str
    port: int
    protocol: ListenerProtocol
    default_actions: Tuple[RoutingAction, ...] = ()
    ssl_policy: Optional[str] = None
    certificates: Tuple[Certificate, ...] = ()
    load_balancer_arn: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Listener":
        """
        Build a Listener from an ELBv2 listener description.

        DescribeListeners only reports the default certificate and omits
        IsDefault, so a missing flag is read as default.
        """
        actions: List[Dict[str, Any]] = sorted(
            data.get("DefaultActions") or [], key=lambda a: a.get("Order", 0)
        )
        return cls(
            arn=data["ListenerArn"],
            port=int(data["Port"]),
            protocol=ListenerProtocol(data["Protocol"]),
            default_actions=tuple(observed_action_from_api(a) for a in actions),
            ssl_policy=data.get("SslPolicy"),
            certificates=tuple(
                Certificate(arn=c["CertificateArn"], is_default=c.get("IsDefault", True))
                for c in data.get("Certificates") or []
            ),
            load_balancer_arn=data.get("LoadBalancerArn"),
        )


@dataclass(frozen=True)
class ReconcileRequest:
    """Everything the listener reconciler needs for one pass."""

    load_balancer_arn: str
    ingress: Ingress
    annotations: "IngressAnnotations"
    port: ListenerPort
    target_groups: Mapping[IngressBackend, str] = field(default_factory=dict)
    instance: Optional[Listener] = None
