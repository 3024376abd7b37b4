"""Runtime wiring helper for CLI applications."""

from dataclasses import dataclass
from pathlib import Path

from .adapters.fs_host import FsHost
from .config import FolgeConfig, LinkSettings, load_config, load_settings, update_settings
from .core.index import CollectionIndex
from .linker import Linker


@dataclass
class Runtime:
    """Container for all wired components."""
    host: FsHost
    linker: Linker
    index: CollectionIndex
    settings: LinkSettings
    config: FolgeConfig

    def update_settings(self, **changes) -> LinkSettings:
        return update_settings(self.config.vault.settings, self.settings, **changes)


def build_runtime(
    vault_path: Path | None = None,
    config_path: Path | None = None,
    editor: str | None = None,
    assume_yes: bool = False,
    quiet: bool = False,
) -> Runtime:
    """Build and wire all components for a vault."""
    config = load_config(config_path=config_path, vault_path=vault_path)

    if vault_path is not None:
        config.vault.root = vault_path

    settings = load_settings(config.vault.settings)
    host = FsHost(config.vault.root, editor=editor, assume_yes=assume_yes, quiet=quiet)
    linker = Linker(host, settings)
    linker.register()

    return Runtime(
        host=host,
        linker=linker,
        index=linker.index,
        settings=settings,
        config=config,
    )
