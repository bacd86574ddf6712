"""
ELBv2 Listener API - Implements ListenerAPI on top of the boto3 elbv2 client.

boto3 is blocking, so each call runs in a worker thread. Retries and
timeouts are delegated to botocore through its client Config.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config as BotoConfig

from cloud.base import ListenerAPI
from config import AWSConfig
from listener.models import Listener, ListenerConfig

logger = logging.getLogger(__name__)


def make_elbv2_client(aws_config: AWSConfig):
    """Create a boto3 elbv2 client from configuration."""
    boto_config = BotoConfig(
        retries={"max_attempts": aws_config.max_attempts, "mode": "standard"},
        connect_timeout=aws_config.connect_timeout,
        read_timeout=aws_config.read_timeout,
    )
    kwargs: Dict[str, Any] = {"config": boto_config}
    if aws_config.region:
        kwargs["region_name"] = aws_config.region
    if aws_config.endpoint_url:
        kwargs["endpoint_url"] = aws_config.endpoint_url
    return boto3.client("elbv2", **kwargs)


class Elbv2ListenerAPI(ListenerAPI):
    """
    ListenerAPI backed by the AWS Elastic Load Balancing v2 service.

    ClientError and BotoCoreError propagate to the caller unchanged.
    """

    def __init__(self, client=None, aws_config: Optional[AWSConfig] = None):
        if client is None:
            client = make_elbv2_client(aws_config or AWSConfig())
        self.client = client

    async def create_listener(
        self, load_balancer_arn: str, config: ListenerConfig
    ) -> Listener:
        logger.info(
            f"Creating {config.protocol.value}:{config.port} listener "
            f"on {load_balancer_arn}"
        )
        response = await asyncio.to_thread(
            self.client.create_listener,
            LoadBalancerArn=load_balancer_arn,
            **config.to_api(),
        )
        return Listener.from_api(response["Listeners"][0])

    async def modify_listener(self, listener_arn: str, config: ListenerConfig) -> Listener:
        logger.info(f"Modifying listener {listener_arn}")
        response = await asyncio.to_thread(
            self.client.modify_listener,
            ListenerArn=listener_arn,
            **config.to_api(),
        )
        return Listener.from_api(response["Listeners"][0])

    async def describe_listener(
        self, load_balancer_arn: str, port: int
    ) -> Optional[Listener]:
        paginator = self.client.get_paginator("describe_listeners")

        def _find() -> Optional[Dict[str, Any]]:
            for page in paginator.paginate(LoadBalancerArn=load_balancer_arn):
                for item in page.get("Listeners", []):
                    if item.get("Port") == port:
                        return item
            return None

        found = await asyncio.to_thread(_find)
        if found is None:
            logger.debug(f"No listener on port {port} of {load_balancer_arn}")
            return None
        return Listener.from_api(found)
