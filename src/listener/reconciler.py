"""
Listener Reconciler - Converges one ELBv2 listener to its desired state.

A pass builds the desired configuration, then either creates the listener
or modifies it when it has drifted, then hands the listener to the rule
reconciler. Listener mutations are not rolled back when the rule stage
fails: convergence is at-least-once and callers retry by reconciling again.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Mapping, Optional, Union

from cloud.base import ListenerAPI
from events import EventBus, EventType, ListenerEvent
from listener.annotations import IngressAnnotations
from listener.builder import build_listener_config
from listener.drift import needs_update
from listener.errors import (
    ListenerCreateError,
    ListenerReconcileError,
    ListenerUpdateError,
    RuleReconciliationError,
)
from listener.models import Ingress, IngressBackend, Listener, ListenerConfig, ReconcileRequest

logger = logging.getLogger(__name__)


class RuleReconciler(ABC):
    """Converges the routing rules attached to a listener."""

    @abstractmethod
    async def reconcile(
        self,
        listener_arn: str,
        ingress: Ingress,
        annotations: IngressAnnotations,
        target_groups: Mapping[IngressBackend, str],
    ) -> None:
        """
        Reconcile the rules of a listener against the ingress rules.

        Args:
            listener_arn: The converged listener.
            ingress: The route specification.
            annotations: Annotation lookups for custom actions.
            target_groups: Target group arn per backend.
        """
        pass


class UnmanagedRuleReconciler(RuleReconciler):
    """Leaves listener rules untouched; for listeners whose rules live elsewhere."""

    async def reconcile(self, listener_arn, ingress, annotations, target_groups) -> None:
        logger.info(
            f"Skipping rule reconciliation for {listener_arn}: "
            f"{len(ingress.rules)} rule(s) of {ingress.namespace}/{ingress.name} "
            f"are not managed here"
        )


@dataclass(frozen=True)
class CreateListener:
    """No listener exists yet: create one."""


@dataclass(frozen=True)
class UpdateListenerIfDrifted:
    """A listener exists: modify it only when it drifted."""

    instance: Listener


ListenerOperation = Union[CreateListener, UpdateListenerIfDrifted]


def plan_operation(request: ReconcileRequest) -> ListenerOperation:
    """Choose the lifecycle operation for a request."""
    if request.instance is None:
        return CreateListener()
    return UpdateListenerIfDrifted(instance=request.instance)


@dataclass(frozen=True)
class ReconcileOutcome:
    """What a reconciliation pass did to the listener."""

    listener: Listener
    event_type: EventType


class ListenerReconciler:
    """
    Reconciles a single listener per call.

    There is no locking: callers must serialize reconciliations that target
    the same listener. Cancellation propagates without rollback.
    """

    def __init__(
        self,
        cloud: ListenerAPI,
        rules: RuleReconciler,
        event_bus: Optional[EventBus] = None,
    ):
        self.cloud = cloud
        self.rules = rules
        self._event_bus = event_bus

    async def reconcile(self, request: ReconcileRequest) -> Listener:
        """
        Make sure a listener exists that satisfies ``request``.

        Returns:
            The created, modified, or unchanged Listener.

        Raises:
            AnnotationResolutionError: A custom default action is unresolvable.
            UnresolvedBackendError: The default backend has no target group.
            ListenerCreateError: The provider rejected the create call.
            ListenerUpdateError: The provider rejected the modify call.
            RuleReconciliationError: Rule reconciliation failed; the listener
                change has already been applied.
        """
        outcome = await self.reconcile_listener(request)
        return outcome.listener

    async def reconcile_listener(self, request: ReconcileRequest) -> ReconcileOutcome:
        """Same as :meth:`reconcile` but also reports what was done."""
        try:
            config = build_listener_config(request)
            operation = plan_operation(request)

            if isinstance(operation, CreateListener):
                listener = await self._create(request.load_balancer_arn, config)
                event_type = EventType.CREATED
            else:
                listener, modified = await self._update_if_drifted(
                    operation.instance, config
                )
                event_type = EventType.MODIFIED if modified else EventType.UNCHANGED

            try:
                await self.rules.reconcile(
                    listener.arn,
                    request.ingress,
                    request.annotations,
                    request.target_groups,
                )
            except RuleReconciliationError:
                raise
            except Exception as e:
                raise RuleReconciliationError(
                    f"failed to reconcile rules of {listener.arn}: {e}"
                ) from e

        except ListenerReconcileError as e:
            logger.error(
                f"Listener {request.port.scheme.value}:{request.port.port} on "
                f"{request.load_balancer_arn} failed ({e.kind}): {e}"
            )
            await self._publish(request, EventType.FAILED, None, str(e))
            raise

        logger.info(
            f"Listener {listener.arn} reconciled ({event_type.value.lower()})"
        )
        await self._publish(request, event_type, listener.arn, "Listener reconciled")
        return ReconcileOutcome(listener=listener, event_type=event_type)

    async def _create(self, load_balancer_arn: str, config: ListenerConfig) -> Listener:
        try:
            return await self.cloud.create_listener(load_balancer_arn, config)
        except Exception as e:
            raise ListenerCreateError(f"failed to create listener: {e}") from e

    async def _update_if_drifted(self, instance: Listener, config: ListenerConfig):
        if not needs_update(instance, config):
            logger.debug(f"Listener {instance.arn} is up to date")
            return instance, False
        try:
            listener = await self.cloud.modify_listener(instance.arn, config)
        except Exception as e:
            raise ListenerUpdateError(
                f"failed to modify listener {instance.arn}: {e}"
            ) from e
        return listener, True

    async def _publish(
        self,
        request: ReconcileRequest,
        event_type: EventType,
        listener_arn: Optional[str],
        message: str,
    ) -> None:
        if self._event_bus is None:
            return
        event = ListenerEvent.now(
            event_type,
            load_balancer_arn=request.load_balancer_arn,
            port=request.port.port,
            protocol=request.port.scheme.value,
            listener_arn=listener_arn,
            message=message,
        )
        await self._event_bus.publish(event)
