"""
Cloud listener clients.

The listener reconciler talks to the load balancer provider only through
the ListenerAPI interface.
"""

from cloud.base import ListenerAPI

__all__ = ["ListenerAPI"]
