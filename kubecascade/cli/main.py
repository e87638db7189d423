"""kubecascade command-line interface.

Commands:
    analyze  -- report dependencies and the deletion verdict for one resource
    delete   -- run the full confirm-then-delete workflow against the cluster
    serve    -- start the REST pre-flight inspector
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import click

from kubecascade import __version__
from kubecascade.cli.render import TerminalPrompt, render_view
from kubecascade.config import load_config
from kubecascade.models.config import KubeCascadeConfig
from kubecascade.models.findings import DeletionDecision
from kubecascade.models.resources import ResourceIdentity, identity_of, normalize_kind
from kubecascade.observability.logging import setup_logging
from kubecascade.policy import build_confirmation, evaluate_deletion
from kubecascade.workflow import DeletionWorkflow, OutcomeStatus

EXIT_BLOCKED = 2

_OUTCOME_EXIT_CODES: dict[OutcomeStatus, int] = {
    OutcomeStatus.COMMITTED: 0,
    OutcomeStatus.CANCELLED: 1,
    OutcomeStatus.FAILED: 1,
    OutcomeStatus.STALE: 1,
    OutcomeStatus.BLOCKED: EXIT_BLOCKED,
}


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise click.BadParameter(f"cannot read {path}: {exc}") from exc


def _load_candidates(path: Path) -> list[Any]:
    """Accept a ``kubectl get -o json`` List or a bare JSON array."""
    payload = _read_json(path)
    if isinstance(payload, dict) and isinstance(payload.get("items"), list):
        return list(payload["items"])
    if isinstance(payload, list):
        return payload
    raise click.BadParameter(f"{path} must hold a JSON array or a List object with 'items'")


def _target_stub(kind: str, name: str, namespace: str) -> dict[str, Any]:
    metadata = {"name": name}
    if namespace:
        metadata["namespace"] = namespace
    return {"kind": kind, "metadata": metadata}


def _identity(kind: str, target: dict[str, Any]) -> ResourceIdentity:
    raw = identity_of(target, kind)
    if raw is None:
        raise ValueError("Deletion target has no kind")
    return ResourceIdentity(kind=kind, name=raw.name, namespace=raw.namespace)


def _emit(identity: ResourceIdentity, decision: DeletionDecision, config: KubeCascadeConfig, output: str) -> None:
    view = build_confirmation(
        identity,
        decision,
        force_permitted=identity.kind not in config.policy.force_denied_kinds,
        grace_period_seconds=config.policy.grace_period_seconds,
    )
    if output == "json":
        click.echo(json.dumps({"decision": decision.to_dict(), "confirmation": view.to_dict()}, indent=2))
    else:
        click.echo(render_view(view))


async def _analyze_live(
    kind: str,
    name: str,
    namespace: str,
    target: dict[str, Any] | None,
    force: bool,
    config: KubeCascadeConfig,
) -> tuple[dict[str, Any] | None, DeletionDecision | None]:
    from kubecascade.collector import KubernetesResourceLister, connect

    apis = await connect()
    try:
        lister = KubernetesResourceLister(apis)
        if target is None:
            target = await lister.get_resource(kind, namespace, name)
            if target is None:
                return None, None
        workflow = DeletionWorkflow.from_config(lister, config)
        return target, await workflow.analyze_deletion(target, kind=kind, force=force)
    finally:
        await apis.close()


async def _delete_live(
    kind: str,
    name: str,
    namespace: str,
    force: bool,
    assume_yes: bool,
    config: KubeCascadeConfig,
) -> OutcomeStatus | None:
    from kubecascade.collector import KubernetesResourceDeleter, KubernetesResourceLister, connect

    apis = await connect()
    try:
        lister = KubernetesResourceLister(apis)
        target = await lister.get_resource(kind, namespace, name)
        if target is None:
            return None
        workflow = DeletionWorkflow.from_config(lister, config, prompt=TerminalPrompt(assume_yes=assume_yes))
        outcome = await workflow.run(target, KubernetesResourceDeleter(apis), kind=kind, force=force)
        if outcome.error:
            click.secho(f"Delete failed: {outcome.error}", fg="red", err=True)
        return outcome.status
    finally:
        await apis.close()


@click.group()
@click.version_option(__version__, prog_name="kubecascade")
def cli() -> None:
    """Kubernetes deletion impact analysis."""


@cli.command()
@click.argument("kind")
@click.argument("name")
@click.option("-n", "--namespace", default="", help="Namespace of the target.")
@click.option(
    "--target",
    "target_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file holding the target object.",
)
@click.option(
    "--candidates",
    "candidates_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON array or List of related objects; analyze offline instead of listing the cluster.",
)
@click.option("--force", is_flag=True, help="Evaluate as a forced deletion.")
@click.option("-o", "--output", type=click.Choice(["text", "json"]), default="text", show_default=True)
def analyze(
    kind: str,
    name: str,
    namespace: str,
    target_file: Path | None,
    candidates_file: Path | None,
    force: bool,
    output: str,
) -> None:
    """Show what deleting KIND NAME would break or cascade to.

    Exits with status 2 when the deletion would be blocked.
    """
    config = load_config()
    setup_logging("error" if output == "json" else config.log.level)
    canonical = normalize_kind(kind)

    target: dict[str, Any] | None = None
    if target_file is not None:
        loaded = _read_json(target_file)
        if not isinstance(loaded, dict):
            raise click.BadParameter(f"{target_file} must hold a JSON object", param_hint="--target")
        target = loaded

    if candidates_file is not None:
        target = target or _target_stub(canonical, name, namespace)
        permitted = canonical not in config.policy.force_denied_kinds
        decision = evaluate_deletion(
            canonical,
            target,
            _load_candidates(candidates_file),
            force=force and permitted,
            max_depth=config.engine.cascade_max_depth,
        )
    else:
        target, live_decision = asyncio.run(_analyze_live(canonical, name, namespace, target, force, config))
        if target is None or live_decision is None:
            click.secho(f"{canonical} {name!r} not found", fg="red", err=True)
            sys.exit(1)
        decision = live_decision

    _emit(_identity(canonical, target), decision, config, output)
    if decision.blocking:
        sys.exit(EXIT_BLOCKED)


@cli.command()
@click.argument("kind")
@click.argument("name")
@click.option("-n", "--namespace", default="", help="Namespace of the target.")
@click.option("--force", is_flag=True, help="Delete even when critical dependencies exist.")
@click.option("-y", "--yes", "assume_yes", is_flag=True, help="Do not prompt when the deletion is allowed.")
@click.option("--grace-period", type=click.IntRange(min=0), default=None, help="Grace period in seconds.")
def delete(kind: str, name: str, namespace: str, force: bool, assume_yes: bool, grace_period: int | None) -> None:
    """Analyze, confirm and delete KIND NAME."""
    config = load_config()
    setup_logging(config.log.level)
    if grace_period is not None:
        config.policy.grace_period_seconds = grace_period

    canonical = normalize_kind(kind)
    status = asyncio.run(_delete_live(canonical, name, namespace, force, assume_yes, config))
    if status is None:
        click.secho(f"{canonical} {name!r} not found", fg="red", err=True)
        sys.exit(1)

    color = "green" if status == OutcomeStatus.COMMITTED else "yellow"
    click.secho(f"{canonical} {name!r}: {status.value}", fg=color)
    sys.exit(_OUTCOME_EXIT_CODES[status])


@cli.command()
def serve() -> None:
    """Start the REST pre-flight inspector."""
    from kubecascade.app import main

    asyncio.run(main())
