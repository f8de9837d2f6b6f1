"""Reconciliation of plaintext Secrets into SealedSecrets.

For every selected Secret the reconciler seals the chosen keys, merges
the fresh ciphertext into the previously committed SealedSecret, drops
keys that no longer exist in the plaintext, and writes the result next
to the manifests it came from. Failures are scoped: one bad key or one
bad Secret never stops the rest of the batch.
"""

from __future__ import annotations

import contextlib
import os
import threading
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

import yaml
from icecream import ic

from kubeseal_sync import console
from kubeseal_sync.exceptions import IntegrityError, KubesealSyncError
from kubeseal_sync.manifests.index import ManifestIndex
from kubeseal_sync.manifests.records import SealedSecretRecord
from kubeseal_sync.models import KeyFailure, ReconcileReport, RecordOutcome, SecretRef, SecretSelection, SelectionSet
from kubeseal_sync.paths import DEFAULT_REPO_MARKER, get_sealed_secret_file_path
from kubeseal_sync.secrets.merging import build_sealed_secret, merge_encrypted_data
from kubeseal_sync.secrets.sealing import SealingOracle


@dataclass
class _PendingRecord:
    """A Secret whose sealing calls have been scheduled."""

    selection: SecretSelection
    prior: SealedSecretRecord | None
    plain_keys: frozenset[str]
    target: Path
    futures: dict[str, Future[str]]


def keys_to_seal(
    selected: frozenset[str],
    plain_keys: frozenset[str],
    prior: SealedSecretRecord | None,
) -> frozenset[str]:
    """Keys to send to the sealing oracle for one Secret.

    Selected keys are sealed, as is every plaintext key the prior
    SealedSecret does not hold yet (all of them when there is no prior).
    """
    already_sealed = frozenset(prior.encrypted_data) if prior is not None else frozenset()
    return (selected | (plain_keys - already_sealed)) & plain_keys


def write_manifest(path: Path, document: dict) -> None:
    """Atomically write ``document`` as YAML to ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + "_new")
    try:
        with tmp.open("w") as stream:
            yaml.safe_dump(document, stream, sort_keys=False, default_flow_style=False)
        tmp.replace(path)
    except OSError:
        with contextlib.suppress(OSError):
            tmp.unlink(missing_ok=True)
        raise


class Reconciler:
    """Produce SealedSecret files for a SelectionSet.

    Attributes:
        oracle: Seals one value for one ``(namespace, name)`` identity.
        marker: Repository root marker used to validate manifest paths.
        max_workers: Upper bound of concurrent sealing calls.

    """

    def __init__(
        self,
        oracle: SealingOracle,
        *,
        marker: str = DEFAULT_REPO_MARKER,
        max_workers: int = 8,
    ) -> None:
        self.oracle = oracle
        self.marker = marker
        self.max_workers = max_workers

    def __repr__(self) -> str:
        return f"Reconciler(oracle={self.oracle!r}, max_workers={self.max_workers})"

    def _seal_value(self, stopping: threading.Event, namespace: str, name: str, value: bytes) -> str:
        if stopping.is_set():
            raise CancelledError
        try:
            return self.oracle.seal(namespace, name, value)
        except KeyboardInterrupt:
            stopping.set()
            raise

    def _schedule(
        self,
        pool: ThreadPoolExecutor,
        stopping: threading.Event,
        selection: SecretSelection,
        prior: SealedSecretRecord | None,
        claimed: dict[Path, SecretRef],
    ) -> _PendingRecord:
        secret = selection.secret
        target = Path(get_sealed_secret_file_path(secret.path, self.marker))
        owner = claimed.setdefault(target, secret.ref)
        if owner != secret.ref:
            raise IntegrityError(f"{target} already holds the SealedSecret of {owner}, refusing to overwrite it")

        plaintext = secret.plaintext()
        plain_keys = frozenset(plaintext)
        namespace = secret.metadata.namespace or ""

        futures = {
            key: pool.submit(self._seal_value, stopping, namespace, secret.metadata.name, plaintext[key])
            for key in sorted(keys_to_seal(selection.keys, plain_keys, prior))
        }
        return _PendingRecord(selection, prior, plain_keys, target, futures)

    def _finish(self, pending: _PendingRecord) -> RecordOutcome:
        secret = pending.selection.secret
        outcome = RecordOutcome(ref=secret.ref)

        fresh: dict[str, str] = {}
        for key, future in pending.futures.items():
            try:
                fresh[key] = future.result()
            except KubesealSyncError as err:
                outcome.failures.append(KeyFailure(key=key, error=str(err)))

        prior_data = pending.prior.encrypted_data if pending.prior is not None else {}
        encrypted = merge_encrypted_data(prior_data, fresh, pending.plain_keys)
        document = build_sealed_secret(secret, pending.prior, encrypted)
        ic(secret.ref, sorted(encrypted))

        write_manifest(pending.target, document)
        outcome.path = pending.target
        outcome.sealed_keys = tuple(sorted(fresh))

        # A SealedSecret found elsewhere would now be a duplicate of the one just written
        if pending.prior is not None and Path(pending.prior.path) != pending.target:
            try:
                os.remove(pending.prior.path)
            except OSError as err:
                console.warning(f"Could not remove relocated SealedSecret {pending.prior.path}: {err}")
            else:
                console.step(f"Removed relocated SealedSecret {pending.prior.path}")

        return outcome

    def reconcile(self, selection: SelectionSet, index: ManifestIndex) -> ReconcileReport:
        """Seal, merge and write every Secret in ``selection``.

        Each Secret owns exactly one SealedSecret file. A Secret whose
        file is already claimed, by an earlier Secret of the batch or by
        a SealedSecret of another identity on disk, fails without
        writing anything.

        On KeyboardInterrupt running kubeseal calls finish, queued ones
        are dropped, no further file is written and the interrupt is
        re-raised.

        Args:
            selection: Secrets and keys eligible for re-sealing.
            index: Manifest index used to find prior SealedSecrets. It is
                re-synced once after the batch.

        Returns:
            Per-Secret outcomes; record and key failures are collected here
            rather than raised.

        """
        report = ReconcileReport()
        if not selection:
            console.warning("Nothing selected to reconcile")
            return report

        snapshot = index.snapshot()
        priors = snapshot.sealed_secrets_by_ref()
        claimed = {Path(record.path): ref for ref, record in priors.items()}
        pending: list[_PendingRecord] = []
        stopping = threading.Event()

        pool = ThreadPoolExecutor(max_workers=self.max_workers)
        try:
            for entry in selection:
                try:
                    pending.append(self._schedule(pool, stopping, entry, priors.get(entry.ref), claimed))
                except KubesealSyncError as err:
                    report.outcomes.append(RecordOutcome(ref=entry.ref, error=str(err)))

            with console.create_task_progress() as progress:
                task = progress.add_task("Sealing secrets", total=len(pending))
                for item in pending:
                    try:
                        report.outcomes.append(self._finish(item))
                    except OSError as err:
                        report.outcomes.append(
                            RecordOutcome(ref=item.selection.ref, error=f"Cannot write {item.target}: {err}")
                        )
                    progress.update(task, advance=1)
        except KeyboardInterrupt:
            # Running kubeseal calls finish; nothing new is started
            stopping.set()
            pool.shutdown(wait=True, cancel_futures=True)
            raise
        finally:
            pool.shutdown(wait=True)

        index.sync()
        return report


def reconcile(selection: SelectionSet, index: ManifestIndex, oracle: SealingOracle, **kwargs) -> ReconcileReport:
    """Shortcut for ``Reconciler(oracle, **kwargs).reconcile(selection, index)``."""
    return Reconciler(oracle, **kwargs).reconcile(selection, index)


__all__ = ["Reconciler", "keys_to_seal", "reconcile", "write_manifest"]
