"""Shared test fixtures for kubeseal-sync tests."""

from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from kubeseal_sync.exceptions import SealingError
from kubeseal_sync.manifests.index import ManifestIndex
from kubeseal_sync.models import Environment, SecretRef, SelectionSet


class FakeOracle:
    """Sealing oracle returning readable, unique fake ciphertext.

    Values listed in ``fail_values`` raise SealingError instead, and the
    call numbered ``interrupt_on`` (1-based) raises KeyboardInterrupt.
    """

    def __init__(self, fail_values: set[bytes] | None = None, interrupt_on: int | None = None) -> None:
        self.fail_values = fail_values or set()
        self.interrupt_on = interrupt_on
        self.calls: list[tuple[str, str, bytes]] = []

    def seal(self, namespace: str, name: str, plaintext: bytes) -> str:
        self.calls.append((namespace, name, plaintext))
        if len(self.calls) == self.interrupt_on:
            raise KeyboardInterrupt
        if plaintext in self.fail_values:
            raise SealingError("cannot fetch certificate", namespace=namespace, name=name, stderr="boom")
        return f"Ag{len(self.calls)}:{namespace}:{name}:{plaintext.hex()}"

    @property
    def sealed_values(self) -> list[bytes]:
        return [c[2] for c in self.calls]


@pytest.fixture
def mock_kube_contexts():
    """Mock kubernetes config contexts."""
    with patch("kubernetes.config.list_kube_config_contexts") as mock:
        mock.return_value = ([{"name": "test-context"}], {"name": "test-context"})
        yield mock


@pytest.fixture
def mock_kube_config():
    """Mock kubernetes config loading."""
    with patch("kubernetes.config.load_kube_config") as mock:
        yield mock


@pytest.fixture
def manifests_dir(tmp_path) -> Path:
    """Generated manifests directory inside a fake repository checkout."""
    path = tmp_path / "repo" / "kubernetes" / "generatedManifests"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def write_manifest(manifests_dir) -> Callable[..., Path]:
    """Write a manifest document below the local environment directory."""

    def _write(relative: str, document: dict | None, environment: Environment = Environment.LOCAL) -> Path:
        path = manifests_dir / environment.value / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(document) if document is not None else "")
        return path

    return _write


def secret_document(name: str, namespace: str = "applications", **fields) -> dict:
    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "type": "Opaque",
        "metadata": {"name": name, "namespace": namespace},
        **fields,
    }


def sealed_secret_document(name: str, namespace: str = "applications", encrypted_data: dict | None = None) -> dict:
    return {
        "apiVersion": "bitnami.com/v1alpha1",
        "kind": "SealedSecret",
        "metadata": {
            "name": name,
            "namespace": namespace,
            "annotations": {"sealedsecrets.bitnami.com/managed": "true"},
        },
        "spec": {
            "encryptedData": encrypted_data or {},
            "template": {"metadata": {"name": name, "namespace": namespace}, "type": "Opaque"},
        },
    }


def selected_keys(selection: SelectionSet) -> dict[SecretRef, frozenset[str]]:
    return {entry.ref: entry.keys for entry in selection}


@pytest.fixture
def fake_oracle() -> FakeOracle:
    return FakeOracle()


@pytest.fixture
def index(manifests_dir) -> ManifestIndex:
    """Empty index over the local environment."""
    return ManifestIndex(Environment.LOCAL, manifests_dir=manifests_dir, max_workers=2)
