"""Runtime configuration for vault operations."""

import os
from dataclasses import dataclass
from pathlib import Path

VAULT_ENV = "OBSIDIAN_VAULT_PATH"
TEMPLATE_DIR_ENV = "OBSIDIAN_TEMPLATE_DIR"

DEFAULT_VAULT = "./vault"
DEFAULT_TEMPLATE_DIR = "TEMPLATE"


@dataclass(frozen=True)
class VaultConfig:
    """Where the vault lives and where its templates are kept."""

    vault_path: Path
    template_dir: str = DEFAULT_TEMPLATE_DIR

    @classmethod
    def from_env(cls) -> "VaultConfig":
        return cls(
            vault_path=Path(os.getenv(VAULT_ENV, DEFAULT_VAULT)).resolve(),
            template_dir=os.getenv(TEMPLATE_DIR_ENV, DEFAULT_TEMPLATE_DIR),
        )

    @property
    def templates_path(self) -> Path:
        return self.vault_path / self.template_dir
