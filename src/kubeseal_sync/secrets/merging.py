"""Merging fresh ciphertext into SealedSecret documents."""

from collections.abc import Iterable, Mapping
from typing import Any

from kubeseal_sync.manifests.records import SealedSecretRecord, SecretRecord

SEALED_SECRET_API_VERSION = "bitnami.com/v1alpha1"
SEALED_SECRET_KIND = "SealedSecret"
MANAGED_ANNOTATION = "sealedsecrets.bitnami.com/managed"


def merge_encrypted_data(
    prior: Mapping[str, str],
    fresh: Mapping[str, str],
    plain_keys: Iterable[str],
) -> dict[str, str]:
    """Merge new ciphertext over prior ciphertext and drop stale keys.

    Args:
        prior: ``encryptedData`` of the existing SealedSecret (empty if none).
        fresh: Ciphertext produced in this run; wins over ``prior``.
        plain_keys: Keys currently present in the plaintext Secret. Anything
            else is removed, even if it was not re-sealed.

    Returns:
        The merged ``encryptedData`` mapping, sorted by key.

    """
    keep = set(plain_keys)
    merged = {**prior, **fresh}
    return {k: merged[k] for k in sorted(merged) if k in keep}


def _template_metadata(secret: SecretRecord) -> dict[str, Any]:
    meta: dict[str, Any] = {"name": secret.metadata.name, "namespace": secret.metadata.namespace}
    if secret.metadata.labels:
        meta["labels"] = dict(secret.metadata.labels)
    if secret.metadata.annotations:
        meta["annotations"] = dict(secret.metadata.annotations)
    return meta


def build_sealed_secret(
    secret: SecretRecord,
    prior: SealedSecretRecord | None,
    encrypted_data: Mapping[str, str],
) -> dict[str, Any]:
    """Build the SealedSecret document for ``secret``.

    Prior metadata (annotations, labels and any other field) is kept, with
    the managed annotation forced to ``"true"`` so the controller adopts an
    existing Secret. The template takes metadata and type from the plaintext
    Secret on top of whatever the prior template held.
    """
    metadata: dict[str, Any] = {}
    annotations: dict[str, str] = {}
    template: dict[str, Any] = {}
    if prior is not None:
        metadata = prior.metadata.model_dump(exclude_none=True)
        annotations = dict(prior.metadata.annotations)
        template = dict(prior.spec.template or {})

    annotations[MANAGED_ANNOTATION] = "true"
    metadata.update(
        name=secret.metadata.name,
        namespace=secret.metadata.namespace,
        annotations=annotations,
    )
    if not metadata.get("labels"):
        metadata.pop("labels", None)

    template["metadata"] = _template_metadata(secret)
    if secret.type:
        template["type"] = secret.type
    template.pop("data", None)

    return {
        "apiVersion": SEALED_SECRET_API_VERSION,
        "kind": SEALED_SECRET_KIND,
        "metadata": metadata,
        "spec": {
            "encryptedData": dict(encrypted_data),
            "template": template,
        },
    }
