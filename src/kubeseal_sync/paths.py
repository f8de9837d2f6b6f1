"""Deterministic path resolution for generated manifests.

Every function here is pure: it computes paths from its arguments and
never touches the filesystem. The layout is consumed by the GitOps
apply step, so it must not drift::

    <manifests_dir>/<env>/<resource_type>/<resource_name>/1-manifest/secret-x.yaml
    <manifests_dir>/<env>/<resource_type>/<resource_name>/sealed-secrets/sealed-secret-x.yaml
"""

import os
from pathlib import PurePath

from kubeseal_sync.exceptions import PathResolutionError
from kubeseal_sync.models import Environment, ResourceType

SEALED_SECRETS_DIR_NAME = "sealed-secrets"
SEALED_FILE_PREFIX = "sealed-"
DEFAULT_REPO_MARKER = "kubernetes"

_SEPARATORS = ("/", "\\")


def get_generated_env_manifests_dir(environment: Environment, manifests_dir: str | os.PathLike[str]) -> str:
    """Directory of the generated manifests for one environment."""
    return os.path.join(manifests_dir, Environment(environment).value)


def get_resource_type_dir(
    environment: Environment,
    resource_type: ResourceType,
    manifests_dir: str | os.PathLike[str],
) -> str:
    return os.path.join(get_generated_env_manifests_dir(environment, manifests_dir), ResourceType(resource_type).value)


def get_resource_absolute_path(
    resource_name: str,
    environment: Environment,
    resource_type: ResourceType,
    manifests_dir: str | os.PathLike[str],
) -> str:
    """Root directory holding every manifest rendered for one resource.

    Args:
        resource_name: Application or infrastructure component name (e.g. ``graphql-mongo``).
        environment: Environment the manifests were generated for.
        resource_type: Whether this is a service or an infrastructure component.
        manifests_dir: Base directory of all generated manifests.

    Returns:
        The resource directory path.

    """
    return os.path.join(get_resource_type_dir(environment, resource_type, manifests_dir), resource_name)


def get_repo_path_from_absolute_path(path: str | os.PathLike[str], marker: str = DEFAULT_REPO_MARKER) -> str:
    """Strip everything before the last repository root marker segment.

    Args:
        path: An absolute path inside the repository.
        marker: Name of the directory that marks the repository root.

    Returns:
        The path relative to the repository, starting with ``marker``.

    Raises:
        PathResolutionError: If ``marker`` is not one of the path segments.

    """
    parts = PurePath(path).parts
    indexes = [i for i, part in enumerate(parts) if part == marker]
    if not indexes:
        raise PathResolutionError(f"path not found: '{path}' does not contain the '{marker}' segment")
    return str(PurePath(*parts[indexes[-1] :]))


def get_resource_relative_path(
    resource_name: str,
    environment: Environment,
    resource_type: ResourceType,
    manifests_dir: str | os.PathLike[str],
    marker: str = DEFAULT_REPO_MARKER,
) -> str:
    """Repository-relative form of :func:`get_resource_absolute_path`."""
    absolute = get_resource_absolute_path(resource_name, environment, resource_type, manifests_dir)
    return get_repo_path_from_absolute_path(absolute, marker)


def get_resource_base_dir(manifest_path: str | os.PathLike[str]) -> str:
    """Application base directory of a rendered manifest file.

    The manifest lives one directory below the base directory
    (``.../graphql-mongo/1-manifest/secret.yaml`` gives ``.../graphql-mongo``).

    Raises:
        PathResolutionError: If the path is too shallow to have a base directory.

    """
    manifest = PurePath(manifest_path)
    if len(manifest.parents) < 2:
        raise PathResolutionError(f"path not found: '{manifest_path}' has no application base directory")
    return str(manifest.parent.parent)


def get_sealed_secrets_dir(manifest_path: str | os.PathLike[str], marker: str = DEFAULT_REPO_MARKER) -> str:
    """Sibling ``sealed-secrets`` directory for a rendered manifest file."""
    get_repo_path_from_absolute_path(manifest_path, marker)
    return os.path.join(get_resource_base_dir(manifest_path), SEALED_SECRETS_DIR_NAME)


def get_sealed_secret_file_path(manifest_path: str | os.PathLike[str], marker: str = DEFAULT_REPO_MARKER) -> str:
    """Where the SealedSecret for a plaintext Secret manifest is written.

    Example:
        ``.../services/graphql-mongo/1-manifest/secret-x.yaml`` maps to
        ``.../services/graphql-mongo/sealed-secrets/sealed-secret-x.yaml``.

    """
    stem = PurePath(manifest_path).stem
    return os.path.join(get_sealed_secrets_dir(manifest_path, marker), f"{SEALED_FILE_PREFIX}{stem}.yaml")


def is_within_dir(path: str, directory: str) -> bool:
    """Check whether ``path`` lies below ``directory`` using either separator."""
    directory = directory.rstrip("/\\")
    return any(path.startswith(f"{directory}{sep}") for sep in _SEPARATORS)
