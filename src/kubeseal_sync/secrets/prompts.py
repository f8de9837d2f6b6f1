"""Interactive prompts for scoping a reconciliation run.

This module only gathers answers from the user; turning answers into a
SelectionSet is done by the pure policies in
:mod:`kubeseal_sync.secrets.selection`.
"""

import click
import questionary
from questionary import Choice, Separator

from kubeseal_sync import console
from kubeseal_sync.manifests.records import SecretRecord
from kubeseal_sync.models import Environment, SecretRef, SelectionSet
from kubeseal_sync.secrets.selection import group_by_namespace, select_all, select_explicit
from kubeseal_sync.styles import NAMESPACE_HEADER, POINTER, PROMPT_STYLE, QMARK


def _require_one(answer: list) -> bool | str:
    if not answer:
        return "You must choose at least one secret."
    return True


def prompt_environment(default: Environment = Environment.LOCAL) -> Environment:
    """Ask which environment's manifests to work with.

    Raises:
        click.Abort: If the user cancels the prompt.

    """
    selected = questionary.select(
        "Select the environment",
        choices=[e.value for e in Environment],
        default=default.value,
        style=PROMPT_STYLE,
        pointer=POINTER,
        qmark=QMARK,
    ).ask()
    if selected is None:
        console.warning("Environment selection cancelled.")
        raise click.Abort()
    return Environment(selected)


def build_secret_choices(secrets: list[SecretRecord]) -> list[Choice | Separator]:
    """Checkbox choices listing secrets under a header per namespace.

    Example:
        Namespace ==> applications
          graphql-mongo-secret
          react-web-secret
        Namespace ==> infrastructure
          argocd-secret

    """
    choices: list[Choice | Separator] = []
    for namespace, namespace_secrets in group_by_namespace(secrets).items():
        choices.append(Separator(NAMESPACE_HEADER.format(namespace=namespace)))
        choices.extend(Choice(title=s.metadata.name, value=s.ref) for s in namespace_secrets)
    return choices


def prompt_secret_keys(secret: SecretRecord) -> list[str]:
    """Ask which keys of one Secret should be re-sealed."""
    name, namespace = secret.metadata.name, secret.metadata.namespace
    return questionary.checkbox(
        f"Select secrets from {name} in the {namespace} namespace",
        choices=sorted(secret.keys()),
        style=PROMPT_STYLE,
        pointer=POINTER,
        qmark=QMARK,
    ).unsafe_ask()


def prompt_secret_selection(secrets: list[SecretRecord]) -> SelectionSet:
    """Interactively narrow ``secrets`` down to a SelectionSet.

    The first prompt picks Secret objects. Picking all of them selects
    every key; otherwise a follow-up prompt per picked Secret asks for the
    exact keys, and Secrets left with no keys are dropped.

    Args:
        secrets: Candidate Secret records from the index.

    Returns:
        The secrets and keys to reconcile.

    """
    if not secrets:
        console.warning("No Secret manifests found")
        return SelectionSet()

    picked: list[SecretRef] = questionary.checkbox(
        "Which of the secrets do you want to update?",
        choices=build_secret_choices(secrets),
        validate=_require_one,
        style=PROMPT_STYLE,
        pointer=POINTER,
        qmark=QMARK,
    ).unsafe_ask()

    if len(set(picked)) == len(secrets):
        return select_all(secrets)

    by_ref = {s.ref: s for s in secrets}
    chosen = {ref: prompt_secret_keys(by_ref[ref]) for ref in picked}
    return select_explicit(secrets, chosen)
