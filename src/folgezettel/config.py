"""Configuration: folge.toml for wiring, a YAML file for link settings."""

import io
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

import yaml

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore


@dataclass
class LinkSettings:
    """User-facing behaviour of the linker. Persisted on every change."""
    auto_process: bool = True
    show_notifications: bool = True
    auto_bidirectional_links: bool = True
    parent_link_description: str = "Parent"
    child_link_description: str = "Child"
    backlink_heading: str = "Related Notes"
    forward_link_heading: str = "Child Notes"
    cross_link_heading: str = "Related Notes"


@dataclass
class VaultConfig:
    """Vault-specific configuration."""
    root: Path
    settings: Path


@dataclass
class WatchConfig:
    """Watch mode configuration."""
    debounce_ms: int = 150


@dataclass
class FolgeConfig:
    """Complete folgezettel configuration."""
    vault: VaultConfig
    watch: WatchConfig


def load_config(config_path: Path | None = None, vault_path: Path | None = None) -> FolgeConfig:
    """
    Load configuration from folge.toml.

    Search order:
    1. config_path (if provided)
    2. cwd/folge.toml
    3. vault_path/folge.toml

    Args:
        config_path: Explicit path to config file
        vault_path: Vault root path for fallback search

    Returns:
        FolgeConfig with resolved settings
    """
    toml_data: dict[str, Any] = {}

    search_paths = []
    if config_path:
        search_paths.append(config_path)
    search_paths.append(Path.cwd() / "folge.toml")
    if vault_path:
        search_paths.append(vault_path / "folge.toml")

    for path in search_paths:
        if path.exists():
            with open(path, "rb") as f:
                toml_data = tomllib.load(f)
            break

    vault_data = toml_data.get("vault", {})
    vault_root = Path(vault_data.get("root", vault_path or Path("./vault")))
    settings_path = Path(vault_data.get("settings", vault_root / ".folge" / "settings.yaml"))

    watch_data = toml_data.get("watch", {})

    return FolgeConfig(
        vault=VaultConfig(root=vault_root, settings=settings_path),
        watch=WatchConfig(debounce_ms=watch_data.get("debounce_ms", 150)),
    )


def load_settings(path: Path) -> LinkSettings:
    """Read stored settings merged over the defaults. Unknown keys are ignored."""
    if not path.exists():
        return LinkSettings()
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a mapping")
    settings = LinkSettings()
    known = {f.name for f in fields(LinkSettings)}
    for name, value in data.items():
        if name in known:
            setattr(settings, name, _coerce(name, value, getattr(settings, name)))
    return settings


def save_settings(path: Path, settings: LinkSettings) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    buf = io.StringIO()
    yaml.safe_dump(asdict(settings), buf, sort_keys=False, allow_unicode=True)
    path.write_text(buf.getvalue(), encoding="utf-8")


def _coerce(name: str, value: Any, current: Any) -> Any:
    if isinstance(current, bool):
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("true", "yes", "on", "1"):
                return True
            if lowered in ("false", "no", "off", "0"):
                return False
        raise ValueError(f"Setting {name} expects a boolean, got {value!r}")
    if not isinstance(value, str):
        raise ValueError(f"Setting {name} expects a string, got {value!r}")
    return value


def update_settings(path: Path, settings: LinkSettings, **changes: Any) -> LinkSettings:
    """Apply ``changes`` to ``settings`` in place and persist them."""
    known = {f.name for f in fields(LinkSettings)}
    for name, value in changes.items():
        if name not in known:
            raise KeyError(f"Unknown setting: {name}")
        setattr(settings, name, _coerce(name, value, getattr(settings, name)))
    save_settings(path, settings)
    return settings
