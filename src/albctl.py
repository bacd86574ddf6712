#!/usr/bin/env python3
"""
CLI tool for the ALB listener reconciler
Renders, plans and applies one listener from a request document
"""

import asyncio
import dataclasses
import json
import logging

import click
import yaml
from botocore.exceptions import BotoCoreError, ClientError
from tabulate import tabulate

from cloud.elbv2 import Elbv2ListenerAPI
from config import get_config
from events import EventBus
from listener.builder import build_listener_config
from listener.drift import diff_listener
from listener.errors import ListenerReconcileError
from listener.reconciler import ListenerReconciler, UnmanagedRuleReconciler
from validation import load_request_document


def _read_document(filename):
    """Read a YAML/JSON request document"""
    with open(filename, "r") as f:
        if filename.endswith(".yaml") or filename.endswith(".yml"):
            return yaml.safe_load(f)
        return json.load(f)


def _load_request(filename):
    cfg = get_config()
    try:
        return load_request_document(
            _read_document(filename),
            annotation_prefix=cfg.reconciler.annotation_prefix,
        )
    except ValueError as e:
        raise click.ClickException(str(e))


def _describe_action(action):
    api = action.to_api()
    detail = {k: v for k, v in api.items() if k != "Type"}
    for config in detail.values():
        if isinstance(config, dict) and "ClientSecret" in config:
            config["ClientSecret"] = "****"
    return f"{api['Type']} {json.dumps(detail, sort_keys=True)}"


def _format_value(field, value):
    if field == "default_actions":
        return "\n".join(_describe_action(a) for a in value) or "-"
    if field == "certificates":
        return (
            "\n".join(f"{c.arn}{' (default)' if c.is_default else ''}" for c in value)
            or "-"
        )
    if value is None:
        return "-"
    return getattr(value, "value", value)


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL")
def cli(log_level):
    """ALB listener reconciler CLI"""
    level = log_level or get_config().reconciler.log_level
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@cli.command()
@click.argument("filename", type=click.Path(exists=True))
@click.option(
    "--output", "-o", type=click.Choice(["table", "json", "yaml"]), default="table"
)
def render(filename, output):
    """Show the desired listener configuration"""
    request = _load_request(filename)
    try:
        config = build_listener_config(request)
    except ListenerReconcileError as e:
        raise click.ClickException(f"{e.kind}: {e}")

    if output == "json":
        click.echo(json.dumps(config.to_api(), indent=2))
    elif output == "yaml":
        click.echo(yaml.dump(config.to_api(), default_flow_style=False))
    else:
        rows = [
            ["Port", config.port],
            ["Protocol", config.protocol.value],
            ["SSL policy", _format_value("ssl_policy", config.ssl_policy)],
            ["Certificates", _format_value("certificates", config.certificates)],
            [
                "Default actions",
                _format_value("default_actions", config.default_actions),
            ],
        ]
        click.echo(tabulate(rows, tablefmt="grid"))


@cli.command()
@click.argument("filename", type=click.Path(exists=True))
def plan(filename):
    """Compare the live listener with the desired configuration"""
    request = _load_request(filename)
    api = Elbv2ListenerAPI(aws_config=get_config().aws)

    try:
        config = build_listener_config(request)
    except ListenerReconcileError as e:
        raise click.ClickException(f"{e.kind}: {e}")

    try:
        live = asyncio.run(
            api.describe_listener(request.load_balancer_arn, request.port.port)
        )
    except (BotoCoreError, ClientError) as e:
        raise click.ClickException(f"AWS error: {e}")
    if live is None:
        click.echo(
            f"No listener on port {request.port.port}: "
            f"a {config.protocol.value} listener will be created"
        )
        return

    drifts = diff_listener(live, config)
    if not drifts:
        click.echo(f"✓ Listener {live.arn} is up to date")
        return

    rows = [
        [
            d.field,
            _format_value(d.field, d.observed),
            _format_value(d.field, d.desired),
        ]
        for d in drifts
    ]
    click.echo(f"Listener {live.arn} will be modified:")
    click.echo(tabulate(rows, headers=["Field", "Live", "Desired"], tablefmt="grid"))


@cli.command()
@click.argument("filename", type=click.Path(exists=True))
@click.option("--watch", is_flag=True, help="Stream reconciliation events as JSON")
def apply(filename, watch):
    """Create or update the listener described by a request document"""
    cfg = get_config()
    request = _load_request(filename)
    api = Elbv2ListenerAPI(aws_config=cfg.aws)
    event_bus = EventBus() if watch else None
    reconciler = ListenerReconciler(
        cloud=api, rules=UnmanagedRuleReconciler(), event_bus=event_bus
    )

    async def converge():
        instance = await api.describe_listener(
            request.load_balancer_arn, request.port.port
        )
        return await reconciler.reconcile_listener(
            dataclasses.replace(request, instance=instance)
        )

    async def stream(subscription):
        async for event in subscription:
            click.echo(event.to_json())

    async def run():
        timeout = cfg.reconciler.reconcile_timeout
        if event_bus is None:
            return await asyncio.wait_for(converge(), timeout=timeout)
        subscriber_id, subscription = await event_bus.subscribe()
        printer = asyncio.create_task(stream(subscription))
        try:
            return await asyncio.wait_for(converge(), timeout=timeout)
        finally:
            await event_bus.unsubscribe(subscriber_id)
            await printer

    try:
        outcome = asyncio.run(run())
    except ListenerReconcileError as e:
        raise click.ClickException(f"{e.kind}: {e}")
    except (BotoCoreError, ClientError) as e:
        raise click.ClickException(f"AWS error: {e}")
    except asyncio.TimeoutError:
        raise click.ClickException(
            f"Reconciliation timed out after {cfg.reconciler.reconcile_timeout}s"
        )

    click.echo(f"Listener: {outcome.listener.arn}")
    click.echo(f"Result: {outcome.event_type.value}")


if __name__ == "__main__":
    cli()
