"""Click commands.

    kubeinformer run [--config PATH] [--log-level LEVEL] [--log-format FORMAT]
    kubeinformer check MANIFEST...
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from typing import Any

import click
import yaml

from kubeinformer import __version__
from kubeinformer.collector import build_deployment_state, build_node_state, build_pod_state
from kubeinformer.config import ConfigError, load_config
from kubeinformer.evaluators import evaluate
from kubeinformer.models.alerts import Alert

_STATE_BUILDERS = {
    "Pod": build_pod_state,
    "Node": build_node_state,
    "Deployment": build_deployment_state,
}


@click.group()
@click.version_option(__version__, prog_name="kubeinformer")
def cli() -> None:
    """Watch Kubernetes pods, nodes and deployments and send deduplicated alerts."""


@cli.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML configuration file (defaults to $KUBEINFORMER_CONFIG_FILE).",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override the configured log level.",
)
@click.option(
    "--log-format",
    type=click.Choice(["json", "console"], case_sensitive=False),
    default=None,
    help="Override the configured log renderer.",
)
def run(config_path: str | None, log_level: str | None, log_format: str | None) -> None:
    """Run the health watcher until SIGINT/SIGTERM."""
    from kubeinformer.app import main

    try:
        config = load_config(config_path)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    if log_level:
        config.log.level = log_level.lower()
    if log_format:
        config.log.format = log_format.lower()
    asyncio.run(main(config))


@cli.command()
@click.argument("manifests", nargs=-1, required=True, type=click.File("r"))
def check(manifests: tuple[Any, ...]) -> None:
    """Evaluate Pod, Node and Deployment manifests offline.

    Accepts YAML or JSON, multiple documents per file and ``kind: List``
    wrappers (as produced by ``kubectl get -o yaml``).  Prints one line per
    alert and exits with status 1 when any alert is raised.
    """
    alerts: list[Alert] = []
    for fh in manifests:
        try:
            docs = list(yaml.safe_load_all(fh))
        except yaml.YAMLError as exc:
            raise click.ClickException(f"{fh.name}: invalid YAML/JSON: {exc}") from exc
        for obj in _iter_objects(docs):
            builder = _STATE_BUILDERS.get(str(obj.get("kind", "")))
            if builder is None:
                continue
            state = builder(obj)
            if state is None:
                click.echo(f"{fh.name}: skipping {obj.get('kind')} without metadata.name", err=True)
                continue
            alerts.extend(evaluate(state))

    for alert in alerts:
        click.echo(alert.format_message())
    if alerts:
        raise SystemExit(1)
    click.echo("no alerts")


def _iter_objects(docs: list[Any]) -> Iterator[dict[str, Any]]:
    for doc in docs:
        if not isinstance(doc, dict):
            continue
        kind = str(doc.get("kind", ""))
        if not kind.endswith("List"):
            yield doc
            continue
        # API list responses (PodList, ...) omit the kind on each item.
        item_kind = kind.removesuffix("List")
        for item in doc.get("items") or []:
            if isinstance(item, dict):
                yield item if "kind" in item or not item_kind else {**item, "kind": item_kind}
