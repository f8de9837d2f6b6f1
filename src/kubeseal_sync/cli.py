#!/usr/bin/env python
"""Command-line interface for kubeseal-sync.

This module provides the ``kubeseal-sync`` command group. Each command
builds a SealedSecretsSync facade for one environment and turns library
errors into a red error line and exit code 1.
"""

import sys
from collections.abc import Callable, Iterator
from contextlib import contextmanager

import click
from icecream import ic

from kubeseal_sync import __version__, console
from kubeseal_sync.config import Settings, load_settings
from kubeseal_sync.core.syncer import SealedSecretsSync
from kubeseal_sync.exceptions import KubesealSyncError
from kubeseal_sync.models import Environment, ReconcileReport
from kubeseal_sync.secrets.prompts import prompt_environment

ENV_CHOICES = click.Choice([e.value for e in Environment])


def parse_image_tags(ctx: click.Context, param: click.Parameter, values: tuple[str, ...]) -> dict[str, str]:
    """Turn repeated ``NAME=TAG`` options into a mapping."""
    tags: dict[str, str] = {}
    for value in values:
        name, sep, tag = value.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"'{value}' is not in NAME=TAG form", ctx=ctx, param=param)
        tags[name] = tag
    return tags


def resolve_environment(env: str | None) -> Environment:
    if env is None:
        return prompt_environment()
    return Environment(env)


@contextmanager
def handle_errors() -> Iterator[None]:
    """Exit with status 1 on any kubeseal-sync error."""
    try:
        yield
    except KubesealSyncError as e:
        console.error(str(e))
        sys.exit(1)


def exit_on_failures(report: ReconcileReport) -> None:
    if not report.ok:
        sys.exit(1)


def env_option(func: Callable) -> Callable:
    return click.option(
        "--env",
        "-e",
        "env",
        type=ENV_CHOICES,
        required=False,
        help="environment whose manifests to use (prompted when omitted)",
    )(func)


@click.group(
    help="Keep committed SealedSecrets in sync with generated Secret manifests",
    invoke_without_command=True,
)
@click.option("--version", "-v", required=False, is_flag=True, help="print version")
@click.option("--debug", required=False, is_flag=True, help="print debug information")
@click.pass_context
def cli(ctx: click.Context, version: bool, debug: bool) -> None:
    """Process global options.

    Args:
        ctx: Click context.
        version: Print version and exit.
        debug: Enable debug output.

    """
    if not debug:
        ic.disable()

    if version:
        click.echo(__version__)
        ctx.exit()

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command(help="Seal Secrets into SealedSecrets")
@env_option
@click.option("--all", "seal_all", is_flag=True, default=False, help="reseal every key of every secret")
@click.option("--select", required=False, is_flag=True, default=False, help="prompt for context select")
@click.option("--cert", "-c", required=False, help="certificate to seal secrets with (no cluster access)")
@click.option("--regenerate", is_flag=True, default=False, help="run the manifest generator first")
def sync(env: str | None, seal_all: bool, select: bool, cert: str | None, regenerate: bool) -> None:
    """Reconcile SealedSecrets for one environment.

    Args:
        env: Environment name.
        seal_all: Skip the prompts and reseal everything.
        select: Prompt for Kubernetes context selection.
        cert: Path to certificate for detached mode.
        regenerate: Regenerate manifests before sealing.

    """
    environment = resolve_environment(env)
    settings: Settings = load_settings()

    with handle_errors(), SealedSecretsSync(
        environment, settings=settings, select_context=select, certificate=cert
    ) as syncer:
        if regenerate:
            syncer.regenerate()
        else:
            syncer.load()

        report = syncer.sync_all() if seal_all else syncer.sync_with_prompt()

    exit_on_failures(report)


@cli.command(help="Regenerate manifests and re-index them")
@env_option
@click.option(
    "--image-tag",
    "image_tags",
    multiple=True,
    callback=parse_image_tags,
    metavar="NAME=TAG",
    help="image tag variable passed to the generator (repeatable)",
)
def regenerate(env: str | None, image_tags: dict[str, str]) -> None:
    """Run the manifest generator for one environment."""
    environment = resolve_environment(env)

    with handle_errors(), SealedSecretsSync(environment, settings=load_settings()) as syncer:
        index = syncer.regenerate(image_tags)

    console.summary_panel(
        "Manifests regenerated",
        {
            "Environment": environment.value,
            "Manifests": str(len(index.get_all())),
            "Secrets": str(len(index.get_secrets())),
            "SealedSecrets": str(len(index.get_sealed_secrets())),
        },
    )


@cli.command(name="list", help="List indexed manifests")
@env_option
@click.option("--kind", "-k", required=False, help="only show this kind (e.g. Secret, SealedSecret)")
def list_manifests(env: str | None, kind: str | None) -> None:
    """Print the manifests indexed for one environment."""
    environment = resolve_environment(env)

    with handle_errors(), SealedSecretsSync(environment, settings=load_settings()) as syncer:
        syncer.load()
        records = syncer.list_secrets(kind)

    console.records_table(records)


if __name__ == "__main__":
    cli()
