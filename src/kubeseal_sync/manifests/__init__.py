"""Manifest indexing subpackage.

This package contains the typed manifest records, the YAML parser,
the external generator wrapper and the in-memory manifest index.
"""

from kubeseal_sync.manifests.generator import ManifestGenerator
from kubeseal_sync.manifests.index import ManifestIndex, ManifestSnapshot
from kubeseal_sync.manifests.parsing import ManifestParser, YamlManifestParser
from kubeseal_sync.manifests.records import (
    CustomResourceDefinitionRecord,
    ManifestRecord,
    SealedSecretRecord,
    SecretRecord,
    build_record,
)

__all__ = [
    # index
    "ManifestIndex",
    "ManifestSnapshot",
    # parsing
    "ManifestParser",
    "YamlManifestParser",
    # records
    "ManifestRecord",
    "SecretRecord",
    "SealedSecretRecord",
    "CustomResourceDefinitionRecord",
    "build_record",
    # generator
    "ManifestGenerator",
]
