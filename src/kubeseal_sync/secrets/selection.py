"""Selection policies bounding which secrets a run touches.

Resealing rotates ciphertext in committed files, so a run should only
touch the credentials that actually changed. The functions here are
pure; gathering a choice from a human lives in
:mod:`kubeseal_sync.secrets.prompts`.
"""

from collections.abc import Iterable, Mapping

from kubeseal_sync.manifests.records import SecretRecord
from kubeseal_sync.models import SecretRef, SecretSelection, SelectionSet

# Changes most often, so it is listed first
PRIORITY_NAMESPACE = "applications"


def select_all(secrets: Iterable[SecretRecord]) -> SelectionSet:
    """Every secret with every key; used when bootstrapping a fresh cluster."""
    return SelectionSet.from_entries(SecretSelection(secret=s, keys=s.keys()) for s in secrets)


def select_explicit(
    secrets: Iterable[SecretRecord],
    chosen: Mapping[SecretRef, Iterable[str]],
) -> SelectionSet:
    """Narrow ``secrets`` to explicitly chosen keys.

    Args:
        secrets: Candidate Secret records.
        chosen: Keys picked per Secret. Keys the Secret does not hold are
            ignored.

    Returns:
        A SelectionSet in candidate order. Secrets missing from ``chosen``
        or with no valid key chosen are left out.

    """
    entries = []
    for secret in secrets:
        picked = frozenset(chosen.get(secret.ref, ())) & secret.keys()
        if picked:
            entries.append(SecretSelection(secret=secret, keys=picked))
    return SelectionSet.from_entries(entries)


def order_for_display(secrets: Iterable[SecretRecord]) -> list[SecretRecord]:
    """Stable sort putting the ``applications`` namespace first."""
    return sorted(secrets, key=lambda s: s.metadata.namespace != PRIORITY_NAMESPACE)


def group_by_namespace(secrets: Iterable[SecretRecord]) -> dict[str, list[SecretRecord]]:
    """Group secrets by namespace, keeping display order."""
    grouped: dict[str, list[SecretRecord]] = {}
    for secret in order_for_display(secrets):
        grouped.setdefault(secret.metadata.namespace or "", []).append(secret)
    return grouped
