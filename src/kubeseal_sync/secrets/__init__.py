"""Secrets subpackage.

This package contains the sealing oracle, the selection policies and
prompts, the ciphertext merge rules and the reconciler tying them together.
"""

from kubeseal_sync.secrets.merging import build_sealed_secret, merge_encrypted_data
from kubeseal_sync.secrets.prompts import prompt_environment, prompt_secret_selection
from kubeseal_sync.secrets.reconciler import Reconciler, reconcile
from kubeseal_sync.secrets.sealing import KubesealOracle, SealingOracle, resolve_kubeseal_binary
from kubeseal_sync.secrets.selection import group_by_namespace, order_for_display, select_all, select_explicit

__all__ = [
    # sealing
    "SealingOracle",
    "KubesealOracle",
    "resolve_kubeseal_binary",
    # selection
    "select_all",
    "select_explicit",
    "order_for_display",
    "group_by_namespace",
    # prompts
    "prompt_environment",
    "prompt_secret_selection",
    # merging
    "merge_encrypted_data",
    "build_sealed_secret",
    # reconciler
    "Reconciler",
    "reconcile",
]
