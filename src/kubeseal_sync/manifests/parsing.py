"""Manifest file parsing.

This module turns a manifest file on disk into a typed record. The
parser is a small protocol so tests can swap in canned documents.
"""

from pathlib import Path
from typing import Any, Protocol

import yaml
from icecream import ic

from kubeseal_sync.exceptions import ManifestParsingError
from kubeseal_sync.manifests.records import AnyRecord, build_record

MANIFEST_PATTERNS = ("*.yaml", "*.yml")


class ManifestParser(Protocol):
    def parse(self, path: Path) -> AnyRecord | None:
        """Return the record stored in ``path``, or None for an empty file."""
        ...


def load_manifest_document(manifest_path: Path) -> dict[str, Any] | None:
    """Load the single YAML document of a manifest file.

    Args:
        manifest_path: Path to the manifest file.

    Returns:
        The parsed YAML document as a dictionary, or None if the file is
        empty or holds only comments.

    Raises:
        ManifestParsingError: If the file does not exist, contains multiple
            documents, contains malformed YAML, or is not a YAML mapping.

    """
    try:
        with manifest_path.open() as stream:
            docs = [doc for doc in yaml.safe_load_all(stream) if doc is not None]
    except FileNotFoundError as err:
        raise ManifestParsingError(f"Manifest file '{manifest_path}' does not exist") from err
    except yaml.YAMLError as err:
        raise ManifestParsingError(f"Manifest file '{manifest_path}' contains malformed YAML: {err}") from err

    if len(docs) > 1:
        raise ManifestParsingError(
            f"File '{manifest_path}' contains multiple YAML documents. Only single document files are supported."
        )
    if not docs:
        return None

    document = docs[0]
    if not isinstance(document, dict):
        raise ManifestParsingError(
            f"File '{manifest_path}' does not contain a valid YAML mapping. Expected a Kubernetes resource document."
        )
    return document


class YamlManifestParser:
    """Parse manifests with PyYAML and validate them into records."""

    def parse(self, path: Path) -> AnyRecord | None:
        document = load_manifest_document(path)
        if not document:
            ic(f"skipping empty manifest {path}")
            return None
        return build_record(document, str(path.absolute()))


def find_manifest_files(root_dir: Path) -> list[Path]:
    """Recursively list manifest files below ``root_dir`` in a stable order."""
    if not root_dir.is_dir():
        return []
    found = {p for pattern in MANIFEST_PATTERNS for p in root_dir.rglob(pattern) if p.is_file()}
    return sorted(found)
