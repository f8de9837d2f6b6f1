"""SealedSecretsSync facade class.

This module provides the SealedSecretsSync class, the single entry point
the CLI works with. It wires settings, the manifest index, the sealing
oracle and the reconciler together for one environment.
"""

from __future__ import annotations

from collections.abc import Mapping

from icecream import ic

from kubeseal_sync import console
from kubeseal_sync.config import Settings
from kubeseal_sync.core.cluster import Cluster
from kubeseal_sync.locking import WriterLock
from kubeseal_sync.manifests.generator import ManifestGenerator
from kubeseal_sync.manifests.index import ManifestIndex
from kubeseal_sync.manifests.records import AnyRecord
from kubeseal_sync.models import ControllerInfo, Environment, ReconcileReport, SelectionSet
from kubeseal_sync.secrets.prompts import prompt_secret_selection
from kubeseal_sync.secrets.reconciler import Reconciler
from kubeseal_sync.secrets.sealing import KubesealOracle, SealingOracle, resolve_kubeseal_binary
from kubeseal_sync.secrets.selection import select_all


class SealedSecretsSync:
    """Reconcile the SealedSecrets of one environment.

    Cluster access is deferred until something has to be sealed, so
    listing and regenerating manifests work offline.

    Attributes:
        environment: Environment being worked on.
        settings: Effective configuration.
        certificate: Public certificate for detached mode, or None.
        index: Manifest index of the environment.
        cluster: Cluster connection once established (never in detached mode).

    """

    def __init__(
        self,
        environment: Environment,
        *,
        settings: Settings | None = None,
        select_context: bool = False,
        certificate: str | None = None,
        oracle: SealingOracle | None = None,
    ) -> None:
        """Initialize the facade.

        Args:
            environment: Environment whose manifests are reconciled.
            settings: Configuration; loaded from the environment when omitted.
            select_context: Prompt for the Kubernetes context when connecting.
            certificate: Seal offline with this certificate instead of a cluster.
            oracle: Ready-made sealing oracle, bypassing kubeseal discovery.

        """
        self.environment = Environment(environment)
        self.settings: Settings = settings or Settings()
        self.select_context = select_context
        self.certificate = certificate
        self.cluster: Cluster | None = None
        self._oracle = oracle

        manifests_dir = self.settings.resolved_manifests_dir
        self.index = ManifestIndex(
            self.environment,
            manifests_dir=manifests_dir,
            generator=ManifestGenerator(
                manifests_dir,
                command=self.settings.generator_command,
                cwd=self.settings.generator_cwd,
            ),
            max_workers=self.settings.max_workers,
        )
        self._lock = WriterLock(self.index.env_dir)

    def __enter__(self) -> SealedSecretsSync:
        self._lock.acquire()
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        self._lock.release()

    def __repr__(self) -> str:
        if self.detached_mode:
            return f"SealedSecretsSync(environment={self.environment.value!r}, certificate={self.certificate!r})"
        return f"SealedSecretsSync(environment={self.environment.value!r}, cluster={self.cluster!r})"

    @property
    def detached_mode(self) -> bool:
        return self.certificate is not None

    @property
    def oracle(self) -> SealingOracle:
        """Sealing oracle, connecting to the cluster on first use."""
        if self._oracle is None:
            self._oracle = self._build_oracle()
        return self._oracle

    def _build_oracle(self) -> KubesealOracle:
        binary = resolve_kubeseal_binary(self.settings.kubeseal_binary)
        if self.detached_mode:
            console.info("Working in detached mode")
            return KubesealOracle(binary=binary, certificate=self.certificate)

        fallback = ControllerInfo(
            name=self.settings.controller_name,
            namespace=self.settings.controller_namespace,
            version="",
        )
        self.cluster = Cluster(select_context=self.select_context, fallback=fallback)
        return KubesealOracle(binary=binary, context=self.cluster.context, controller=self.cluster.controller)

    def load(self) -> ManifestIndex:
        """Index the environment's manifests."""
        console.action(f"Indexing {console.highlight(self.environment.value)} manifests")
        return self.index.sync()

    def regenerate(self, image_tags: Mapping[str, str] | None = None) -> ManifestIndex:
        """Render fresh manifests with the generator and re-index them."""
        return self.index.regenerate(image_tags)

    def list_secrets(self, kind: str | None = None) -> list[AnyRecord]:
        """Indexed records, optionally limited to one ``kind``."""
        if kind:
            return self.index.get_of_kind(kind)
        return self.index.get_all()

    def reconcile(self, selection: SelectionSet) -> ReconcileReport:
        """Seal ``selection`` and print the outcome table."""
        ic(len(selection))
        if not selection:
            console.warning("No secrets selected; nothing to do")
            return ReconcileReport()

        reconciler = Reconciler(
            self.oracle,
            marker=self.settings.repo_marker,
            max_workers=self.settings.max_workers,
        )
        report = reconciler.reconcile(selection, self.index)
        console.report_table(report)
        return report

    def sync_all(self) -> ReconcileReport:
        """Seal every key of every Secret (bootstrapping a fresh cluster)."""
        return self.reconcile(select_all(self.index.get_secrets()))

    def sync_with_prompt(self) -> ReconcileReport:
        """Ask which secrets and keys to update, then seal them."""
        return self.reconcile(prompt_secret_selection(self.index.get_secrets()))
