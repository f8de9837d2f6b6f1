"""Secret value sealing.

This module wraps the kubeseal binary in raw mode: one plaintext value
in, one ciphertext string out, bound to a ``(namespace, name)`` identity.
The ciphertext also depends on the controller's current keypair, so
sealing the same value twice gives two different (both valid) results.
"""

import shutil
import subprocess
from typing import Protocol

from icecream import ic

from kubeseal_sync.exceptions import BinaryNotFoundError, SealingError
from kubeseal_sync.models import ControllerInfo

# kubeseal reads the raw value from stdin; /dev/stdin keeps it off the command line
_FROM_STDIN = "--from-file=/dev/stdin"


class SealingOracle(Protocol):
    def seal(self, namespace: str, name: str, plaintext: bytes) -> str:
        """Seal ``plaintext`` for the Secret ``namespace/name``."""
        ...


class KubesealOracle:
    """Seal single values with ``kubeseal --raw``.

    Works either against a live controller (context plus controller
    coordinates) or in detached mode with a public certificate.

    Attributes:
        binary: Path to the kubeseal binary.
        certificate: Certificate file for detached mode, or None.
        context: Kubernetes context used to reach the controller.
        controller: Controller coordinates passed to kubeseal.

    """

    def __init__(
        self,
        *,
        binary: str = "kubeseal",
        certificate: str | None = None,
        context: str | None = None,
        controller: ControllerInfo | None = None,
    ) -> None:
        if certificate is None and controller is None:
            raise ValueError("Either a certificate or controller info is required")
        self.binary = binary
        self.certificate = certificate
        self.context = context
        self.controller = controller

    def __repr__(self) -> str:
        if self.certificate is not None:
            return f"KubesealOracle(certificate={self.certificate!r})"
        return f"KubesealOracle(context={self.context!r}, controller={self.controller!r})"

    @property
    def detached_mode(self) -> bool:
        return self.certificate is not None

    def build_cmd(self, namespace: str, name: str) -> list[str]:
        """Build the kubeseal command sealing one value for ``namespace/name``."""
        cmd: list[str] = [self.binary, "--raw", _FROM_STDIN, "--namespace", namespace, "--name", name]

        if self.certificate is not None:
            cmd.append(f"--cert={self.certificate}")
        elif self.controller is not None:
            if self.context:
                cmd.append(f"--context={self.context}")
            cmd.extend(
                [
                    f"--controller-namespace={self.controller.namespace}",
                    f"--controller-name={self.controller.name}",
                ]
            )
        return cmd

    def seal(self, namespace: str, name: str, plaintext: bytes) -> str:
        """Seal one value.

        The value is written to kubeseal's stdin exactly as given; no
        trailing newline is added.

        Args:
            namespace: Namespace of the target Secret.
            name: Name of the target Secret.
            plaintext: Raw (already base64-decoded) secret value.

        Returns:
            The ciphertext string for ``spec.encryptedData``.

        Raises:
            BinaryNotFoundError: If the kubeseal binary cannot be executed.
            SealingError: If kubeseal exits non-zero, writes to stderr, or
                prints no ciphertext.

        """
        cmd = self.build_cmd(namespace, name)
        ic(cmd)

        try:
            result = subprocess.run(cmd, input=plaintext, capture_output=True, check=False)
        except FileNotFoundError as err:
            raise BinaryNotFoundError(
                f"kubeseal binary '{self.binary}' not found. Please install kubeseal or ensure it's in your PATH. "
                "See: https://github.com/bitnami-labs/sealed-secrets#installation"
            ) from err

        stderr_msg = result.stderr.decode(errors="replace").strip() if result.stderr else ""
        if result.returncode != 0 or stderr_msg:
            details = f" - {stderr_msg}" if stderr_msg else ""
            raise SealingError(
                f"Failed to seal value for {namespace}/{name} (exit code {result.returncode}){details}",
                namespace=namespace,
                name=name,
                stderr=stderr_msg,
            )

        ciphertext = result.stdout.decode().strip()
        if not ciphertext:
            raise SealingError(
                f"kubeseal returned no ciphertext for {namespace}/{name}",
                namespace=namespace,
                name=name,
            )
        return ciphertext


def resolve_kubeseal_binary(binary: str) -> str:
    """Resolve ``binary`` against PATH.

    Raises:
        BinaryNotFoundError: If kubeseal is not found.

    """
    resolved = shutil.which(binary)
    if resolved is None:
        raise BinaryNotFoundError(
            f"kubeseal binary '{binary}' not found. Please install kubeseal or ensure it's in your PATH. "
            "See: https://github.com/bitnami-labs/sealed-secrets#installation"
        )
    return resolved
