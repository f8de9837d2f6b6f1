"""Typed records for parsed Kubernetes manifests.

A manifest file is validated into one of the record types below,
chosen by its ``kind`` field. Records are frozen; reconciliation
produces a fresh document instead of mutating them.
"""

from __future__ import annotations

import base64
import binascii
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from kubeseal_sync.exceptions import ManifestParsingError, SchemaViolationError
from kubeseal_sync.models import ResourceKind, SecretRef


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class ObjectMeta(_Frozen):
    """Subset of Kubernetes ``metadata`` the reconciler cares about.

    Unknown metadata fields are kept so they survive a rewrite.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    name: str
    # CRDs and other cluster-scoped objects have no namespace
    namespace: str | None = None
    annotations: dict[str, str] = Field(default_factory=dict)
    labels: dict[str, str] = Field(default_factory=dict)

    @field_validator("annotations", "labels", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class ManifestRecord(_Frozen):
    """Any indexed manifest; also used as-is for kinds without a dedicated type."""

    kind: str
    api_version: str = Field(alias="apiVersion")
    path: str
    metadata: ObjectMeta

    @property
    def ref(self) -> SecretRef:
        return SecretRef(self.metadata.name, self.metadata.namespace)


class SecretRecord(ManifestRecord):
    """A plaintext ``Secret`` rendered by the manifest generator."""

    type: str | None = None
    data: dict[str, str | None] | None = None
    string_data: dict[str, str | None] | None = Field(default=None, alias="stringData")

    def _values(self) -> dict[str, str | None]:
        if self.data and self.string_data:
            raise SchemaViolationError(f"Secret {self.ref} populates both 'data' and 'stringData'")
        return dict(self.string_data or self.data or {})

    def keys(self) -> frozenset[str]:
        """Key names of the populated data field.

        Never raises; a Secret mixing both data fields is rejected later by
        :meth:`plaintext`.
        """
        return frozenset(self.string_data or {}) | frozenset(self.data or {})

    def plaintext(self) -> dict[str, bytes]:
        """Raw values to seal, keyed by secret key.

        ``data`` values are base64-decoded, ``stringData`` values are UTF-8
        encoded and ``null`` values become empty bytes. A ``data`` value
        that is not valid base64 is taken as written.

        Raises:
            SchemaViolationError: If both data fields are populated or the
                namespace is missing.

        """
        if not self.metadata.namespace:
            raise SchemaViolationError(f"Secret '{self.metadata.name}' has no namespace")

        values = self._values()
        if self.string_data:
            return {k: (v or "").encode() for k, v in values.items()}
        return {k: _decode_data_value(v or "") for k, v in values.items()}


def _decode_data_value(value: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error:
        return value.encode()


class SealedSecretSpec(_Frozen):
    encrypted_data: dict[str, str | None] = Field(default_factory=dict, alias="encryptedData")
    template: dict[str, Any] | None = None

    @field_validator("encrypted_data", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class SealedSecretRecord(ManifestRecord):
    """A committed ``SealedSecret`` holding ciphertext only."""

    spec: SealedSecretSpec = Field(default_factory=SealedSecretSpec)

    @property
    def encrypted_data(self) -> dict[str, str]:
        return {k: v for k, v in self.spec.encrypted_data.items() if v is not None}


class CustomResourceDefinitionRecord(ManifestRecord):
    pass


AnyRecord = SecretRecord | SealedSecretRecord | CustomResourceDefinitionRecord | ManifestRecord


def record_type_for(kind: str) -> type[ManifestRecord]:
    """Pick the record model for a manifest ``kind``."""
    match kind:
        case ResourceKind.SECRET:
            return SecretRecord
        case ResourceKind.SEALED_SECRET:
            return SealedSecretRecord
        case ResourceKind.CUSTOM_RESOURCE_DEFINITION:
            return CustomResourceDefinitionRecord
        case _:
            return ManifestRecord


def build_record(document: dict[str, Any], path: str) -> AnyRecord:
    """Validate a parsed manifest document into a typed record.

    Args:
        document: The YAML document as a mapping.
        path: Absolute path of the file the document came from.

    Returns:
        The record matching the document's ``kind``.

    Raises:
        ManifestParsingError: If the document fails schema validation.

    """
    kind = document.get("kind")
    if not isinstance(kind, str):
        raise ManifestParsingError(f"Manifest '{path}' has no 'kind' field")

    try:
        return record_type_for(kind).model_validate({**document, "path": path})
    except ValidationError as err:
        raise ManifestParsingError(f"Manifest '{path}' failed schema validation: {err}") from err
