"""Data models for kubeseal-sync.

This module provides the enumerations and run-scoped structures shared
by the index, the selection prompts and the reconciler. Manifest records
themselves live in :mod:`kubeseal_sync.manifests.records`.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from kubeseal_sync.manifests.records import SecretRecord


class Environment(str, Enum):
    """Deployment environments with their own generated manifests tree."""

    LOCAL = "local"
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class ResourceType(str, Enum):
    """Top-level grouping of resources below an environment directory."""

    SERVICES = "services"
    INFRASTRUCTURE = "infrastructure"


class ResourceKind(str, Enum):
    """Kubernetes object kinds the index knows by name.

    Inherits from str so members compare equal to the raw ``kind`` field.
    Kinds missing here are still indexed as generic records.
    """

    SECRET = "Secret"
    SEALED_SECRET = "SealedSecret"
    CUSTOM_RESOURCE_DEFINITION = "CustomResourceDefinition"
    DEPLOYMENT = "Deployment"
    SERVICE = "Service"
    CONFIG_MAP = "ConfigMap"
    POD = "Pod"


class ControllerInfo(NamedTuple):
    """Information about the SealedSecrets controller.

    Attributes:
        name: The controller service name.
        namespace: The namespace where the controller is deployed.
        version: The controller version string (may be empty).

    """

    name: str
    namespace: str
    version: str


class SecretRef(NamedTuple):
    """Identity shared by a Secret and its SealedSecret counterpart."""

    name: str
    namespace: str | None

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


class ResourceLocator(NamedTuple):
    """Identity of one generated application resource."""

    resource_name: str
    environment: Environment
    resource_type: ResourceType


@dataclass(frozen=True, slots=True)
class SecretSelection:
    """One Secret and the keys of it eligible for re-sealing in this run."""

    secret: SecretRecord
    keys: frozenset[str]

    @property
    def ref(self) -> SecretRef:
        return self.secret.ref


@dataclass(frozen=True)
class SelectionSet:
    """Ordered, run-scoped set of secrets (and their keys) to reconcile.

    Entries with no keys are dropped on construction, so every entry
    in a SelectionSet names at least one key.
    """

    entries: tuple[SecretSelection, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "entries", tuple(e for e in self.entries if e.keys))

    @classmethod
    def from_entries(cls, entries: Iterable[SecretSelection]) -> SelectionSet:
        return cls(entries=tuple(entries))

    def __iter__(self) -> Iterator[SecretSelection]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __bool__(self) -> bool:
        return bool(self.entries)


@dataclass(frozen=True, slots=True)
class KeyFailure:
    """A single key that could not be sealed."""

    key: str
    error: str


@dataclass(slots=True)
class RecordOutcome:
    """Result of reconciling one Secret.

    Attributes:
        ref: Name and namespace of the Secret.
        path: The SealedSecret file written, or None when nothing was written.
        sealed_keys: Keys freshly sealed in this run.
        failures: Keys that failed to seal.
        error: Record-scoped error that stopped this Secret entirely.

    """

    ref: SecretRef
    path: Path | None = None
    sealed_keys: tuple[str, ...] = ()
    failures: list[KeyFailure] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and not self.failures


@dataclass(slots=True)
class ReconcileReport:
    """Aggregate outcome of a reconciliation batch."""

    outcomes: list[RecordOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> list[RecordOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self) -> list[RecordOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def ok(self) -> bool:
        return not self.failed
