"""Configuration management using Pydantic Settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_GENERATOR_COMMAND = "pulumi up --yes --skip-preview --stack dev"


class Settings(BaseSettings):
    """Application settings loaded from ``KUBESEAL_SYNC_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="KUBESEAL_SYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Layout
    manifests_dir: Path = Path("kubernetes") / "generatedManifests"
    repo_marker: str = "kubernetes"

    # Sealing
    kubeseal_binary: str = "kubeseal"
    controller_name: str = "sealed-secrets"
    controller_namespace: str = "kube-system"
    max_workers: int = Field(default=8, ge=1)

    # Manifest generator
    generator_command: str = DEFAULT_GENERATOR_COMMAND
    generator_cwd: Path | None = None

    @property
    def resolved_manifests_dir(self) -> Path:
        """Absolute manifests directory."""
        return self.manifests_dir.expanduser().absolute()


def load_settings(**overrides: object) -> Settings:
    """Build settings from the environment, ignoring ``None`` overrides."""
    return Settings(**{k: v for k, v in overrides.items() if v is not None})
