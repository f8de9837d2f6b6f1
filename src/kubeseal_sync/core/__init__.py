"""Core subpackage.

This package contains the SealedSecretsSync facade and the cluster
connection it uses when sealing against a live controller.
"""

from kubeseal_sync.core.cluster import Cluster
from kubeseal_sync.core.syncer import SealedSecretsSync

__all__ = [
    "Cluster",
    "SealedSecretsSync",
]
