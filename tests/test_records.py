"""Tests for manifests/records.py module."""

import base64

import pytest
from pydantic import ValidationError

from kubeseal_sync.exceptions import ManifestParsingError, SchemaViolationError
from kubeseal_sync.manifests.records import (
    CustomResourceDefinitionRecord,
    ManifestRecord,
    SealedSecretRecord,
    SecretRecord,
    build_record,
)
from kubeseal_sync.models import SecretRef

from conftest import sealed_secret_document, secret_document

PATH = "/repo/kubernetes/generatedManifests/local/services/app/1-manifest/secret-app.yaml"


def b64(value: str) -> str:
    return base64.b64encode(value.encode()).decode()


class TestBuildRecord:
    """Tests for kind dispatch."""

    def test_secret(self):
        """Test Secret documents become SecretRecord."""
        record = build_record(secret_document("app-secret", data={"A": b64("a")}), PATH)

        assert isinstance(record, SecretRecord)
        assert record.path == PATH
        assert record.ref == SecretRef("app-secret", "applications")

    def test_sealed_secret(self):
        """Test SealedSecret documents become SealedSecretRecord."""
        record = build_record(sealed_secret_document("app-secret", encrypted_data={"A": "AgA"}), PATH)

        assert isinstance(record, SealedSecretRecord)
        assert record.encrypted_data == {"A": "AgA"}

    def test_crd_without_namespace(self):
        """Test cluster-scoped CRDs are accepted without a namespace."""
        document = {
            "apiVersion": "apiextensions.k8s.io/v1",
            "kind": "CustomResourceDefinition",
            "metadata": {"name": "sealedsecrets.bitnami.com"},
        }

        record = build_record(document, PATH)

        assert isinstance(record, CustomResourceDefinitionRecord)
        assert record.metadata.namespace is None

    def test_unknown_kind_is_generic(self):
        """Test other kinds become plain ManifestRecord."""
        document = {"apiVersion": "apps/v1", "kind": "Deployment", "metadata": {"name": "web", "namespace": "apps"}}

        record = build_record(document, PATH)

        assert type(record) is ManifestRecord
        assert record.kind == "Deployment"

    def test_missing_kind(self):
        """Test a document without kind is rejected."""
        with pytest.raises(ManifestParsingError, match="no 'kind'"):
            build_record({"apiVersion": "v1", "metadata": {"name": "x"}}, PATH)

    def test_missing_name(self):
        """Test schema validation failure is wrapped."""
        with pytest.raises(ManifestParsingError, match="schema validation"):
            build_record({"apiVersion": "v1", "kind": "Secret", "metadata": {}}, PATH)

    def test_null_annotations(self):
        """Test YAML null annotations and labels become empty mappings."""
        document = secret_document("x")
        document["metadata"].update(annotations=None, labels=None)

        record = build_record(document, PATH)

        assert record.metadata.annotations == {}
        assert record.metadata.labels == {}

    def test_extra_metadata_preserved(self):
        """Test unknown metadata fields survive validation."""
        document = sealed_secret_document("x")
        document["metadata"]["creationTimestamp"] = None
        document["metadata"]["finalizers"] = ["keep"]

        record = build_record(document, PATH)

        assert record.metadata.model_dump(exclude_none=True)["finalizers"] == ["keep"]

    def test_records_are_frozen(self):
        """Test records cannot be mutated."""
        record = build_record(secret_document("x", data={}), PATH)

        with pytest.raises(ValidationError):
            record.kind = "ConfigMap"


class TestSecretPlaintext:
    """Tests for SecretRecord key and value extraction."""

    def test_data_values_decoded(self):
        """Test base64 data values are decoded."""
        record = build_record(secret_document("x", data={"PASSWORD": b64("hunter2")}), PATH)

        assert record.plaintext() == {"PASSWORD": b"hunter2"}

    def test_string_data_values_encoded(self):
        """Test stringData values are used as UTF-8 text."""
        record = build_record(secret_document("x", stringData={"USER": "admin", "EMPTY": None}), PATH)

        assert record.plaintext() == {"USER": b"admin", "EMPTY": b""}

    def test_non_base64_data_taken_as_written(self):
        """Test data values that are not base64 are sealed verbatim."""
        record = build_record(secret_document("x", data={"MONGODB_USERNAME": "u"}), PATH)

        assert record.plaintext() == {"MONGODB_USERNAME": b"u"}

    def test_no_trailing_newline(self):
        """Test decoded values keep their exact bytes."""
        record = build_record(secret_document("x", data={"TOKEN": b64("abc")}), PATH)

        assert not record.plaintext()["TOKEN"].endswith(b"\n")

    def test_both_fields_rejected(self):
        """Test mixing data and stringData is a schema violation."""
        record = build_record(secret_document("x", data={"A": b64("a")}, stringData={"B": "b"}), PATH)

        assert record.keys() == frozenset({"A", "B"})
        with pytest.raises(SchemaViolationError, match="both"):
            record.plaintext()

    def test_missing_namespace_rejected(self):
        """Test a Secret without namespace cannot be sealed."""
        document = secret_document("x", data={"A": b64("a")})
        del document["metadata"]["namespace"]
        record = build_record(document, PATH)

        with pytest.raises(SchemaViolationError, match="no namespace"):
            record.plaintext()

    def test_keys_without_data(self):
        """Test a Secret without data has no keys."""
        record = build_record(secret_document("x"), PATH)

        assert record.keys() == frozenset()
        assert record.plaintext() == {}

    def test_sealed_null_values_filtered(self):
        """Test null ciphertext entries are ignored."""
        record = build_record(sealed_secret_document("x", encrypted_data={"A": "AgA", "B": None}), PATH)

        assert record.encrypted_data == {"A": "AgA"}
