"""
Drift detection between a live listener and its desired configuration.

Default actions are compared as an ordered sequence since ELBv2 evaluates
them in order. Certificates are compared as a set: the provider defines no
order for them.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from listener.models import Certificate, Listener, ListenerConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldDrift:
    """One listener field whose live value differs from the desired one."""

    field: str
    observed: Any
    desired: Any


def _certificate_set(certificates: Tuple[Certificate, ...]) -> frozenset:
    return frozenset(certificates)


# (field, normalizer applied to both sides before comparison)
_CHECKS: List[Tuple[str, Optional[Callable[[Any], Any]]]] = [
    ("port", None),
    ("protocol", None),
    ("certificates", _certificate_set),
    ("ssl_policy", None),
    ("default_actions", tuple),
]


def diff_listener(observed: Listener, target: ListenerConfig) -> List[FieldDrift]:
    """
    List every field where ``observed`` differs from ``target``.

    All checks run regardless of earlier mismatches.
    """
    drifts = []
    for name, normalize in _CHECKS:
        live = getattr(observed, name)
        desired = getattr(target, name)
        if normalize is not None:
            same = normalize(live) == normalize(desired)
        else:
            same = live == desired
        if not same:
            drifts.append(FieldDrift(field=name, observed=live, desired=desired))
    return drifts


def needs_update(observed: Listener, target: ListenerConfig) -> bool:
    """Whether the live listener must be modified to match ``target``."""
    drifts = diff_listener(observed, target)
    for drift in drifts:
        logger.info(
            f"Listener {observed.arn} drifted on {drift.field}: "
            f"{drift.observed!r} -> {drift.desired!r}"
        )
    return bool(drifts)
