"""Kubernetes cluster access for sealing against a live controller.

This module provides the Cluster class, which picks the kubeconfig
context to work with and locates the SealedSecrets controller service
that kubeseal has to talk to.
"""

from typing import Any

import click
import questionary
from icecream import ic
from kubernetes import client, config
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import MaxRetryError

from kubeseal_sync import console
from kubeseal_sync.exceptions import ClusterConnectionError, ControllerNotFoundError
from kubeseal_sync.models import ControllerInfo
from kubeseal_sync.styles import POINTER, PROMPT_STYLE, QMARK

CONTROLLER_LABEL_SELECTOR = "app.kubernetes.io/name=sealed-secrets"
VERSION_LABEL = "app.kubernetes.io/version"


class Cluster:
    """Connection to the cluster whose controller seals the secrets.

    Attributes:
        context: The active Kubernetes context name.
        controller: Coordinates of the SealedSecrets controller.

    """

    def __init__(self, *, select_context: bool, fallback: ControllerInfo | None = None) -> None:
        """Pick a context, load it and discover the controller.

        Args:
            select_context: If True, prompt for the context; otherwise use the
                current one. Must be passed as a keyword argument.
            fallback: Controller coordinates to use when no labelled
                controller service is found.

        """
        self.context: str = self._set_context(select_context=select_context)
        try:
            config.load_kube_config(context=self.context)
        except ConfigException as e:
            raise ClusterConnectionError(f"Cannot load context '{self.context}': {e}") from e
        self.controller: ControllerInfo = self._find_sealed_secrets_controller(fallback)

    def __repr__(self) -> str:
        return f"Cluster(context={self.context!r}, controller={self.controller!r})"

    @staticmethod
    def _set_context(*, select_context: bool) -> str:
        """Set the Kubernetes context to use.

        Returns:
            The selected or current context name.

        Raises:
            ClusterConnectionError: If kubeconfig is invalid or missing.
            click.Abort: If user cancels context selection.

        """
        try:
            contexts, current_context = config.list_kube_config_contexts()
        except ConfigException as e:
            raise ClusterConnectionError(f"Invalid or missing kubeconfig: {e}") from e

        if select_context:
            context: str | None = questionary.select(
                "Select context to work with",
                choices=[c["name"] for c in contexts],
                default=current_context["name"] if current_context else None,
                style=PROMPT_STYLE,
                pointer=POINTER,
                qmark=QMARK,
            ).ask()
            if context is None:
                console.warning("Context selection cancelled.")
                raise click.Abort()
        else:
            if not current_context:
                raise ClusterConnectionError("No current context set in kubeconfig")
            context = str(current_context["name"])

        console.action(f"Working with {console.highlight(context)} cluster")
        return context

    @staticmethod
    def _find_sealed_secrets_controller(fallback: ControllerInfo | None) -> ControllerInfo:
        """Find the SealedSecrets controller service.

        Searches for services labelled ``app.kubernetes.io/name=sealed-secrets``
        and ignores metrics services.

        Raises:
            ClusterConnectionError: If the cluster is unreachable.
            ControllerNotFoundError: If nothing is found and there is no fallback.

        """
        with console.spinner("Searching for SealedSecrets controller..."):
            try:
                found: list[Any] = (
                    client.CoreV1Api()
                    .list_service_for_all_namespaces(label_selector=CONTROLLER_LABEL_SELECTOR)
                    .items
                )
            except MaxRetryError as e:
                raise ClusterConnectionError(f"Failed to connect to the Kubernetes cluster: {e.reason}") from e

            found = [svc for svc in found if "metrics" not in svc.metadata.name]
        ic([svc.metadata.name for svc in found])

        if not found:
            if fallback is None:
                raise ControllerNotFoundError("SealedSecrets controller not found in the cluster")
            console.warning(
                f"No labelled controller service found, using "
                f"{console.highlight(f'{fallback.namespace}/{fallback.name}')}"
            )
            return fallback

        service = found[0]
        if len(found) > 1:
            console.warning(
                f"Multiple services found. Using [yellow]{service.metadata.name}[/yellow] "
                f"in [yellow]{service.metadata.namespace}[/yellow]."
            )

        labels = service.metadata.labels or {}
        console.success(
            f"Found controller: {console.highlight(f'{service.metadata.namespace}/{service.metadata.name}')}"
        )
        return ControllerInfo(
            name=service.metadata.name,
            namespace=service.metadata.namespace,
            version=labels.get(VERSION_LABEL, ""),
        )
