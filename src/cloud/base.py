"""
Listener API Base - Abstract interface to the cloud listener endpoints.

Implementations own transport concerns (retries, throttling, timeouts).
The listener reconciler calls each mutation at most once per pass.
"""

from abc import ABC, abstractmethod
from typing import Optional

from listener.models import Listener, ListenerConfig


class ListenerAPI(ABC):
    """Abstract base class for cloud listener clients."""

    @abstractmethod
    async def create_listener(
        self, load_balancer_arn: str, config: ListenerConfig
    ) -> Listener:
        """
        Create a listener on a load balancer.

        Args:
            load_balancer_arn: The owning load balancer.
            config: The desired listener configuration.

        Returns:
            The created Listener, with its provider-assigned arn.
        """
        pass

    @abstractmethod
    async def modify_listener(self, listener_arn: str, config: ListenerConfig) -> Listener:
        """
        Replace the configuration of an existing listener.

        Args:
            listener_arn: The listener to modify.
            config: The full desired listener configuration.

        Returns:
            The modified Listener.
        """
        pass

    @abstractmethod
    async def describe_listener(
        self, load_balancer_arn: str, port: int
    ) -> Optional[Listener]:
        """
        Find the listener bound to ``port`` on a load balancer.

        Returns:
            The Listener, or None if the port has no listener.
        """
        pass
