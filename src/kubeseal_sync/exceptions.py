"""Custom exceptions for kubeseal-sync.

This module defines the exception hierarchy used throughout the application.
Errors scoped to a single secret (or a single key) are collected by the
reconciler and reported at the end of a batch; errors that make the manifest
index untrustworthy propagate immediately.
"""


class KubesealSyncError(Exception):
    """Base exception for all kubeseal-sync errors.

    All custom exceptions in this package inherit from this class,
    allowing callers to catch all kubeseal-sync errors with a single
    except clause if desired.
    """

    pass


class PathResolutionError(KubesealSyncError):
    """Raised when a manifest path cannot be mapped to its canonical location.

    This can occur when:
    - The path does not contain the repository root marker segment
    - The path is too shallow to have an application base directory
    """

    pass


class ManifestParsingError(KubesealSyncError):
    """Raised when a non-empty manifest file cannot be turned into a record.

    This can occur when:
    - The file is not valid YAML
    - The file holds more than one YAML document
    - The document is not a mapping or fails schema validation

    The manifest generator is expected to emit valid output, so this
    always points at an upstream bug and aborts indexing.
    """

    pass


class SchemaViolationError(KubesealSyncError):
    """Raised when a Secret record cannot be reconciled as-is.

    This can occur when:
    - Both ``data`` and ``stringData`` are populated
    - The namespace is missing
    """

    pass


class SealingError(KubesealSyncError):
    """Raised when the kubeseal binary fails to seal a single value."""

    def __init__(self, message: str, *, namespace: str = "", name: str = "", stderr: str = "") -> None:
        super().__init__(message)
        self.namespace = namespace
        self.name = name
        self.stderr = stderr


class IntegrityError(KubesealSyncError):
    """Raised when two records share the same ``(name, namespace)`` pair.

    The merge target for such a pair is ambiguous, so indexing aborts.
    The reconciler also raises it for a Secret whose SealedSecret file
    already belongs to another identity; that failure stays scoped to
    the one Secret.
    """

    pass


class GeneratorError(KubesealSyncError):
    """Raised when the external manifest generator exits unsuccessfully."""

    pass


class LockError(KubesealSyncError):
    """Raised when another process already holds the writer lock."""

    pass


class ClusterConnectionError(KubesealSyncError):
    """Raised when connection to the Kubernetes cluster fails.

    This can occur when:
    - The kubeconfig is invalid or missing
    - The cluster is unreachable
    - Authentication fails
    """

    pass


class ControllerNotFoundError(KubesealSyncError):
    """Raised when the SealedSecrets controller is not found in the cluster."""

    pass


class BinaryNotFoundError(KubesealSyncError):
    """Raised when the kubeseal binary is not installed or not on PATH."""

    pass
