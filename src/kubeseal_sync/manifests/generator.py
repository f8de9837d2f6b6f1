"""Wrapper around the external manifest generator.

The generator (Pulumi by default) is a black box: it rewrites the
plaintext manifest tree of an environment and never touches the
``sealed-secrets`` directories.
"""

import os
import shlex
import shutil
import subprocess
from collections.abc import Mapping
from pathlib import Path

from icecream import ic

from kubeseal_sync import console
from kubeseal_sync.config import DEFAULT_GENERATOR_COMMAND
from kubeseal_sync.exceptions import GeneratorError
from kubeseal_sync.models import Environment
from kubeseal_sync.paths import get_generated_env_manifests_dir

ENVIRONMENT_KEY = "ENVIRONMENT"

# Directories owned by the generator; regenerated from scratch on every run
RENDERED_DIR_NAMES = ("1-manifest", "0-crd")


class ManifestGenerator:
    """Run the IaC tool that renders manifests for an environment.

    Attributes:
        manifests_dir: Base directory of all generated manifests.
        command: Generator command line, split with shell rules.
        cwd: Working directory for the generator, if different from the current one.

    """

    def __init__(
        self,
        manifests_dir: Path,
        *,
        command: str = DEFAULT_GENERATOR_COMMAND,
        cwd: Path | None = None,
    ) -> None:
        self.manifests_dir = manifests_dir
        self.command = command
        self.cwd = cwd

    def __repr__(self) -> str:
        return f"ManifestGenerator(manifests_dir={str(self.manifests_dir)!r}, command={self.command!r})"

    def build_env(self, environment: Environment, image_tags: Mapping[str, str] | None = None) -> dict[str, str]:
        """Environment variables passed to the generator process."""
        env = dict(os.environ)
        env.update(image_tags or {})
        env[ENVIRONMENT_KEY] = Environment(environment).value
        env.setdefault("PULUMI_CONFIG_PASSPHRASE", "")
        return env

    def clear_rendered(self, environment: Environment) -> list[Path]:
        """Delete previously rendered manifest directories of ``environment``.

        Returns:
            The directories that were removed.

        """
        env_dir = Path(get_generated_env_manifests_dir(environment, self.manifests_dir))
        if not env_dir.is_dir():
            return []

        removed = [p for name in RENDERED_DIR_NAMES for p in env_dir.rglob(name) if p.is_dir()]
        for directory in removed:
            shutil.rmtree(directory, ignore_errors=True)
        ic(removed)
        return removed

    def generate(self, environment: Environment, image_tags: Mapping[str, str] | None = None) -> None:
        """Render fresh manifests for ``environment``.

        Raises:
            GeneratorError: If the generator binary is missing or exits non-zero.

        """
        console.action(f"Generating manifests for {console.highlight(Environment(environment).value)}")
        self.clear_rendered(environment)

        cmd = shlex.split(self.command)
        ic(cmd)

        try:
            with console.spinner("Running manifest generator..."):
                subprocess.run(
                    cmd,
                    env=self.build_env(environment, image_tags),
                    cwd=self.cwd,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    check=True,
                )
        except FileNotFoundError as err:
            raise GeneratorError(f"Manifest generator '{cmd[0]}' not found on PATH") from err
        except subprocess.CalledProcessError as err:
            stderr_msg = err.stderr.decode().strip() if err.stderr else ""
            details = f" - {stderr_msg}" if stderr_msg else ""
            raise GeneratorError(f"Manifest generator failed (exit code {err.returncode}){details}") from err

        console.success("Manifests generated")
