# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodeconfig/cli/app.py
from __future__ import annotations

from pathlib import Path
from typing import Optional

import pydantic
import typer
import yaml
from kubernetes.config import ConfigException

from nodeconfig.agent.ssh import load_private_key
from nodeconfig.bootstrap import configure_instances
from nodeconfig.cluster.client import load_cluster_client
from nodeconfig.cluster.endpoint import get_cluster_addr
from nodeconfig.config.loader import load_config
from nodeconfig.config.models import InstanceIdentity, PlatformType
from nodeconfig.crypto.fingerprint import public_key_hash
from nodeconfig.errors import NodeConfigError
from nodeconfig.logging.log import init_logging
from nodeconfig.node_config import NodeConfig
from nodeconfig.observers.logger import LoggerObserver


app = typer.Typer(help="Join provisioned instances to the cluster as worker nodes")


def _fail(logger, message: str, log_path: Path, code: int = 1) -> typer.Exit:
    logger.error(message)
    typer.echo(f"error: {message} (see {log_path})", err=True)
    return typer.Exit(code=code)


def _load_config(config: Path, logger, log_path: Path):
    try:
        return load_config(config)
    except (OSError, yaml.YAMLError, pydantic.ValidationError) as e:
        raise _fail(logger, f"invalid config {config}: {e}", log_path)


def _load_cluster(settings, logger, log_path: Path):
    try:
        return load_cluster_client(settings.kubeconfig, settings.kube_context)
    except (ConfigException, OSError) as e:
        raise _fail(logger, f"unable to load cluster credentials: {e}", log_path)


@app.command()
def configure(
    config: Path = typer.Argument(..., help="nodeconfig YAML (settings section is used)"),
    instance_id: str = typer.Option(..., "--instance-id"),
    ip_address: str = typer.Option(..., "--ip"),
    machine_name: str = typer.Option(..., "--machine-name"),
    ssh_key: Path = typer.Option(..., "--ssh-key", help="Private key accepted by the instance"),
    platform: PlatformType = typer.Option(PlatformType.NONE, "--platform"),
    debug: bool = typer.Option(False, "--debug"),
):
    """Configure a single instance."""
    logger, _, log_path = init_logging(verbose=debug)
    cfg = _load_config(config, logger, log_path)
    cluster = _load_cluster(cfg.settings, logger, log_path)

    identity = InstanceIdentity(
        instance_id=instance_id,
        ip_address=ip_address,
        machine_name=machine_name,
        platform=platform,
    )
    try:
        nc = NodeConfig(
            cluster,
            identity,
            load_private_key(ssh_key),
            cfg.settings,
            observers=[LoggerObserver(logger)],
        )
        try:
            node = nc.configure()
        finally:
            nc.close()
    except NodeConfigError as e:
        typer.echo(f"error: {e} (see {log_path})", err=True)
        raise typer.Exit(code=1)

    typer.echo(node.metadata.name)


@app.command("configure-all")
def configure_all(
    config: Path = typer.Argument(..., help="nodeconfig YAML with an instances list"),
    max_workers: Optional[int] = typer.Option(None, "--max-workers"),
    debug: bool = typer.Option(False, "--debug"),
):
    """Configure every instance in the config, one worker per instance."""
    logger, _, log_path = init_logging(verbose=debug)
    cfg = _load_config(config, logger, log_path)
    if not cfg.instances:
        typer.echo("no instances in config", err=True)
        raise typer.Exit(code=2)

    cluster = _load_cluster(cfg.settings, logger, log_path)
    report = configure_instances(
        cluster,
        cfg.instances,
        cfg.settings,
        max_workers=max_workers or cfg.max_workers,
        observers=[LoggerObserver(logger)],
    )
    for r in sorted(report.results, key=lambda r: r.instance_id):
        status = r.node_name if r.ok else f"FAILED: {r.error}"
        typer.echo(f"{r.instance_id}\t{status}")
    typer.echo(report.summary())
    if report.failed:
        raise typer.Exit(code=1)


@app.command("pubkey-hash")
def pubkey_hash(
    key: Path = typer.Argument(..., help="Private key, or a .pub authorized-key file"),
):
    """Print the public key hash annotation value for a key."""
    if key.suffix == ".pub":
        typer.echo(public_key_hash(key.read_text(encoding="utf-8")))
    else:
        typer.echo(public_key_hash(load_private_key(key)))


@app.command("cluster-address")
def cluster_address(url: str = typer.Argument(..., help="e.g. https://api-int.example.com:6443")):
    """Print the API server host the worker ignition endpoint is built on."""
    try:
        typer.echo(get_cluster_addr(url))
    except NodeConfigError as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(code=1)


def main():
    app()


if __name__ == "__main__":
    main()
