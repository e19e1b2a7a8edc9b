# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/cli/app.py

from __future__ import annotations

import asyncio
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import typer

from kubestack.aws import naming
from kubestack.cluster import secrets
from kubestack.cluster.secrets import YamlSecretStore
from kubestack.config.loader import load_config
from kubestack.errors import KubestackError
from kubestack.logging.log import init_logging
from kubestack.observers.dispatcher import EventBus
from kubestack.observers.jsonfile import JsonFileObserver
from kubestack.observers.logger import LoggerObserver
from kubestack.temporal.models import DeleteClusterInput
from kubestack.temporal.worker import run_worker

from .start import (
    load_request,
    query_status,
    send_failed,
    send_ready,
    start_create_workflow,
    start_delete_workflow,
    start_update_workflow,
)

app = typer.Typer(help="kubestack cluster provisioning CLI")
signal_app = typer.Typer(help="Send master readiness signals to a create workflow")
app.add_typer(signal_app, name="signal")


def _request(path: Path):
    try:
        return load_request(path)
    except (OSError, KubestackError) as exc:
        typer.echo(f"[error] {exc}", err=True)
        raise typer.Exit(2)


# ------------------------------------------------------------------------------
# Worker
# ------------------------------------------------------------------------------

@app.command()
def worker(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Provisioner config YAML"),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir"),
    max_workers: int = typer.Option(16, "--max-workers", help="Activity thread pool size"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Run a worker for the provisioning workflows and activities."""
    logger, run_id, log_path = init_logging(base_dir=log_dir, verbose=verbose)
    cfg = load_config(config)
    events_path = log_path.with_name(f"events-{run_id}.jsonl")
    bus = EventBus([LoggerObserver(logger), JsonFileObserver(events_path)])
    typer.echo(f"Logs: {log_path}\nEvents: {events_path}")
    asyncio.run(run_worker(cfg, bus=bus, max_workers=max_workers))


# ------------------------------------------------------------------------------
# Workflows
# ------------------------------------------------------------------------------

@app.command()
def create(request: Path = typer.Argument(..., help="Provisioning request YAML")):
    """Start the create-cluster workflow."""
    req = _request(request)
    handle = asyncio.run(start_create_workflow(req))
    typer.echo(f"[temporal] create workflow started: {handle.id} / {handle.run_id}")


@app.command()
def update(request: Path = typer.Argument(..., help="Provisioning request YAML with the desired node pools")):
    """Start the update-cluster workflow."""
    req = _request(request)
    handle = asyncio.run(start_update_workflow(req))
    typer.echo(f"[temporal] update workflow started: {handle.id} / {handle.run_id}")


@app.command()
def delete(
    cluster_id: str = typer.Argument(...),
    cluster_name: str = typer.Argument(...),
    org_id: str = typer.Option(..., "--org"),
    cluster_uid: str = typer.Option("", "--uid"),
    forced: bool = typer.Option(False, "--forced", help="Keep going when a step fails"),
):
    """Start the delete-cluster workflow."""
    inp = DeleteClusterInput(
        org_id=org_id,
        cluster_id=cluster_id,
        cluster_uid=cluster_uid,
        cluster_name=cluster_name,
        forced=forced,
    )
    handle = asyncio.run(start_delete_workflow(inp))
    typer.echo(f"[temporal] delete workflow started: {handle.id} / {handle.run_id}")


@app.command()
def status(workflow_id: str = typer.Argument(..., help="e.g. kubestack-create:<cluster>")):
    """Show the stage a workflow is in."""
    st = asyncio.run(query_status(workflow_id))
    for key, value in asdict(st).items():
        typer.echo(f"{key}: {value}")


@app.command("upload-kubeconfig")
def upload_kubeconfig(
    cluster_id: str = typer.Argument(...),
    kubeconfig: Path = typer.Argument(..., exists=True, dir_okay=False, help="Admin kubeconfig of the master"),
    org_id: str = typer.Option(..., "--org"),
    cluster_uid: str = typer.Option("", "--uid"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Provisioner config YAML"),
):
    """Store a cluster's kubeconfig where the create workflow picks it up."""
    cfg = load_config(config)
    tags = [secrets.TAG_HIDDEN]
    if cluster_uid:
        tags.append(secrets.cluster_uid_tag(cluster_uid))
    name = naming.kubeconfig_secret_name(cluster_id)
    YamlSecretStore(cfg.stores.secrets_dir).store(
        org_id,
        secrets.CreateSecretRequest(
            name=name,
            type=secrets.KUBECONFIG,
            values={secrets.KUBECONFIG_KEY: kubeconfig.read_text()},
            tags=tags,
        ),
    )
    typer.echo(f"stored {name} for organization {org_id}")


# ------------------------------------------------------------------------------
# Signals
# ------------------------------------------------------------------------------

@signal_app.command("ready")
def signal_ready(workflow_id: str = typer.Argument(...)):
    """Report the master node as ready."""
    asyncio.run(send_ready(workflow_id))
    typer.echo(f"sent node-ready to {workflow_id}")


@signal_app.command("failed")
def signal_failed(
    workflow_id: str = typer.Argument(...),
    message: str = typer.Argument(..., help="Failure reported by the bootstrap agent"),
):
    """Report that the master node failed to bootstrap."""
    asyncio.run(send_failed(workflow_id, message))
    typer.echo(f"sent node-bootstrap-failed to {workflow_id}")


if __name__ == "__main__":
    app()
