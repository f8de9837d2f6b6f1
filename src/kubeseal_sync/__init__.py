"""kubeseal-sync: keep SealedSecrets in step with generated Secrets.

This package indexes the Kubernetes manifests rendered for an
environment, seals the plaintext Secret values with kubeseal and writes
the resulting SealedSecrets next to the manifests they belong to.

Example usage:
    from kubeseal_sync import Environment, SealedSecretsSync

    with SealedSecretsSync(Environment.DEVELOPMENT) as syncer:
        syncer.load()
        report = syncer.sync_all()

    # Or seal offline with the controller's public certificate
    with SealedSecretsSync(Environment.PRODUCTION, certificate="cert.pem") as syncer:
        syncer.load()
        report = syncer.sync_with_prompt()
"""

__version__ = "0.1.0"

from kubeseal_sync.config import Settings, load_settings
from kubeseal_sync.core.syncer import SealedSecretsSync
from kubeseal_sync.exceptions import (
    BinaryNotFoundError,
    ClusterConnectionError,
    ControllerNotFoundError,
    GeneratorError,
    IntegrityError,
    KubesealSyncError,
    LockError,
    ManifestParsingError,
    PathResolutionError,
    SchemaViolationError,
    SealingError,
)
from kubeseal_sync.manifests.index import ManifestIndex
from kubeseal_sync.models import Environment, ReconcileReport, ResourceType, SecretRef, SelectionSet
from kubeseal_sync.secrets.reconciler import Reconciler

__all__ = [
    # Version
    "__version__",
    # Classes
    "SealedSecretsSync",
    "ManifestIndex",
    "Reconciler",
    "Settings",
    "load_settings",
    # Models
    "Environment",
    "ResourceType",
    "SecretRef",
    "SelectionSet",
    "ReconcileReport",
    # Exceptions
    "KubesealSyncError",
    "PathResolutionError",
    "ManifestParsingError",
    "SchemaViolationError",
    "SealingError",
    "IntegrityError",
    "GeneratorError",
    "LockError",
    "ClusterConnectionError",
    "ControllerNotFoundError",
    "BinaryNotFoundError",
]
