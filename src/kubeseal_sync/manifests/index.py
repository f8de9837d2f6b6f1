"""In-memory index of generated manifests.

The index scans an environment's manifest tree, parses every file into
a typed record and answers queries against an immutable snapshot.
``sync()`` builds a complete new snapshot before publishing it, so a
reader never observes a half-built index.
"""

from __future__ import annotations

import threading
from collections import Counter
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from icecream import ic

from kubeseal_sync import console
from kubeseal_sync.exceptions import IntegrityError
from kubeseal_sync.manifests.generator import ManifestGenerator
from kubeseal_sync.manifests.parsing import ManifestParser, YamlManifestParser, find_manifest_files
from kubeseal_sync.manifests.records import AnyRecord, ManifestRecord, SealedSecretRecord, SecretRecord
from kubeseal_sync.models import Environment, ResourceKind, ResourceLocator, ResourceType, SecretRef
from kubeseal_sync.paths import get_generated_env_manifests_dir, get_resource_absolute_path, is_within_dir


@dataclass(frozen=True)
class ManifestSnapshot:
    """Immutable view of every record found by one ``sync()``."""

    records: tuple[AnyRecord, ...] = ()

    def of_kind(self, kind: str) -> list[AnyRecord]:
        return [r for r in self.records if r.kind == kind]

    @property
    def secrets(self) -> list[SecretRecord]:
        return [r for r in self.records if isinstance(r, SecretRecord)]

    @property
    def sealed_secrets(self) -> list[SealedSecretRecord]:
        return [r for r in self.records if isinstance(r, SealedSecretRecord)]

    def sealed_secrets_by_ref(self) -> dict[SecretRef, SealedSecretRecord]:
        return {r.ref: r for r in self.sealed_secrets}


def check_unique_refs(records: Iterable[ManifestRecord], kind: str) -> None:
    """Ensure no two records of ``kind`` share a ``(name, namespace)`` pair.

    Raises:
        IntegrityError: Listing every duplicated pair and the files involved.

    """
    matching = [r for r in records if r.kind == kind]
    counts = Counter(r.ref for r in matching)
    duplicates = sorted((ref for ref, n in counts.items() if n > 1), key=str)
    if not duplicates:
        return

    details = "; ".join(
        f"{ref} in " + ", ".join(sorted(r.path for r in matching if r.ref == ref)) for ref in duplicates
    )
    raise IntegrityError(f"Duplicate {kind} objects: {details}")


class ManifestIndex:
    """Queryable index of the manifests generated for one environment.

    Attributes:
        environment: Environment whose manifest tree is indexed.
        manifests_dir: Base directory of all generated manifests.
        parser: Parser turning one file into a record.
        generator: Generator used by :meth:`regenerate`.
        max_workers: Upper bound of parallel file parses.

    """

    def __init__(
        self,
        environment: Environment,
        *,
        manifests_dir: Path,
        parser: ManifestParser | None = None,
        generator: ManifestGenerator | None = None,
        max_workers: int = 8,
    ) -> None:
        self.environment = Environment(environment)
        self.manifests_dir = Path(manifests_dir).absolute()
        self.parser: ManifestParser = parser or YamlManifestParser()
        self.generator = generator or ManifestGenerator(manifests_dir)
        self.max_workers = max_workers
        self._snapshot = ManifestSnapshot()
        self._publish_lock = threading.Lock()

    def __repr__(self) -> str:
        return (
            f"ManifestIndex(environment={self.environment.value!r}, "
            f"manifests_dir={str(self.manifests_dir)!r}, records={len(self._snapshot.records)})"
        )

    @property
    def env_dir(self) -> Path:
        return Path(get_generated_env_manifests_dir(self.environment, self.manifests_dir))

    def snapshot(self) -> ManifestSnapshot:
        """Current snapshot; hold on to it for one consistent view."""
        return self._snapshot

    def sync(self, root_dir: Path | None = None) -> ManifestIndex:
        """Rebuild the index from the manifest files below ``root_dir``.

        Args:
            root_dir: Directory to scan; defaults to the environment directory.

        Returns:
            The index itself, to allow chaining.

        Raises:
            ManifestParsingError: If a non-empty manifest is invalid.
            IntegrityError: If two Secrets or two SealedSecrets share a name and namespace.

        """
        root = root_dir or self.env_dir
        paths = find_manifest_files(root)
        ic(root, len(paths))

        records: list[AnyRecord] = []
        if paths:
            with console.create_task_progress() as progress:
                task = progress.add_task("Indexing manifests", total=len(paths))
                with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                    for record in pool.map(self.parser.parse, paths):
                        progress.update(task, advance=1)
                        if record is not None:
                            records.append(record)

        check_unique_refs(records, ResourceKind.SEALED_SECRET)
        check_unique_refs(records, ResourceKind.SECRET)

        snapshot = ManifestSnapshot(records=tuple(records))
        with self._publish_lock:
            self._snapshot = snapshot

        console.step(f"Indexed {console.highlight(str(len(records)))} manifest(s) from {root}")
        return self

    def get_all(self) -> list[AnyRecord]:
        return list(self._snapshot.records)

    def get_of_kind(self, kind: str) -> list[AnyRecord]:
        """Get all records of one kind (e.g. ``Deployment``, ``Secret``)."""
        return self._snapshot.of_kind(kind)

    def get_secrets(self) -> list[SecretRecord]:
        return self._snapshot.secrets

    def get_sealed_secrets(self) -> list[SealedSecretRecord]:
        return self._snapshot.sealed_secrets

    def find_sealed_secret(self, ref: SecretRef) -> SealedSecretRecord | None:
        """SealedSecret previously generated for ``ref``, if any."""
        return self._snapshot.sealed_secrets_by_ref().get(ref)

    def get_for_resource(
        self,
        resource_name: str,
        resource_type: ResourceType,
        environment: Environment | None = None,
    ) -> list[AnyRecord]:
        """Get every record rendered for one application or component.

        Args:
            resource_name: Resource directory name (e.g. ``graphql-mongo``).
            resource_type: Whether the resource is a service or infrastructure.
            environment: Environment to look in; defaults to the index's own.

        Returns:
            Records whose file lives below the resource directory.

        """
        locator = ResourceLocator(
            resource_name,
            Environment(environment or self.environment),
            ResourceType(resource_type),
        )
        resource_dir = get_resource_absolute_path(*locator, self.manifests_dir)
        return [r for r in self._snapshot.records if is_within_dir(r.path, resource_dir)]

    def regenerate(self, image_tags: Mapping[str, str] | None = None) -> ManifestIndex:
        """Run the manifest generator for this environment, then re-sync."""
        self.generator.generate(self.environment, image_tags)
        return self.sync()
