"""
Configuration management for tag pages.

The configuration is stored as a TOML file at the root of the vault.
It controls what gets extracted and how the tag page is laid out.
"""

import logging
import os
import tomllib
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import tomli_w

logger = logging.getLogger(__name__)


CONFIG_FILENAME = "tagpage.toml"
CONFIG_VERSION = 1

SORT_ORDERS = ("none", "asc", "desc")

DEFAULT_TITLE_TEMPLATE = "Tag Content for {{tag}}"


@dataclass
class TagPageSettings:
    """Extraction and layout settings."""
    tag_page_dir: str = "Tags"
    frontmatter_query_key: str = "tag-page-query"
    bulleted_sub_items: bool = True
    include_lines: bool = True
    title_template: str = DEFAULT_TITLE_TEMPLATE
    link_at_end: bool = True
    full_link_name: bool = False
    sort_by_date: str = "none"
    max_workers: int = 8

    def __post_init__(self):
        if self.sort_by_date not in SORT_ORDERS:
            raise ValueError(
                f"sort_by_date must be one of {', '.join(SORT_ORDERS)}: {self.sort_by_date!r}"
            )
        if not self.frontmatter_query_key:
            raise ValueError("frontmatter_query_key must not be empty")


_SETTING_NAMES = frozenset(f.name for f in fields(TagPageSettings))


@dataclass
class VaultConfig:
    """Complete vault configuration."""
    path: Path
    version: int = CONFIG_VERSION
    created: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    settings: TagPageSettings = field(default_factory=TagPageSettings)

    @property
    def config_path(self) -> Path:
        """Path to the TOML config file."""
        return self.path / CONFIG_FILENAME

    def exists(self) -> bool:
        """Check if config file exists."""
        return self.config_path.exists()


def tagpage_home() -> Path:
    """Directory for logs, respecting TAGPAGE_HOME."""
    home = os.environ.get("TAGPAGE_HOME")
    if home:
        return Path(home)
    return Path.home() / ".tagpage"


def resolve_vault_path(override: Optional[Path] = None) -> Path:
    """
    Resolve the vault directory.

    Priority: explicit override, TAGPAGE_VAULT, current directory.
    """
    if override is not None:
        return Path(override).expanduser().resolve()
    env = os.environ.get("TAGPAGE_VAULT")
    if env:
        return Path(env).expanduser().resolve()
    return Path.cwd()


def load_config(vault_path: Path) -> VaultConfig:
    """
    Load configuration from a vault directory.

    Raises:
        FileNotFoundError: If config doesn't exist
        ValueError: If config is invalid
    """
    config_path = vault_path / CONFIG_FILENAME

    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with open(config_path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid config {config_path}: {e}") from e

    version = data.get("tagpage", {}).get("version", 1)
    if version > CONFIG_VERSION:
        raise ValueError(f"Config version {version} is newer than supported ({CONFIG_VERSION})")

    section = data.get("settings", {})
    unknown = sorted(set(section) - _SETTING_NAMES)
    if unknown:
        logger.warning("Ignoring unknown settings in %s: %s", config_path, ", ".join(unknown))

    return VaultConfig(
        path=vault_path,
        version=version,
        created=data.get("tagpage", {}).get("created", ""),
        settings=TagPageSettings(**{k: v for k, v in section.items() if k in _SETTING_NAMES}),
    )


def save_config(config: VaultConfig) -> None:
    """
    Save configuration to the vault directory.

    Creates the directory if it doesn't exist.
    """
    config.path.mkdir(parents=True, exist_ok=True)

    data = {
        "tagpage": {
            "version": config.version,
            "created": config.created,
        },
        "settings": asdict(config.settings),
    }

    with open(config.config_path, "wb") as f:
        tomli_w.dump(data, f)


def load_or_create_config(vault_path: Path) -> VaultConfig:
    """
    Load existing config or create a new one with defaults.
    """
    if (vault_path / CONFIG_FILENAME).exists():
        return load_config(vault_path)
    config = VaultConfig(path=vault_path)
    save_config(config)
    return config


def load_settings(vault_path: Path) -> TagPageSettings:
    """Settings from the vault config, or defaults when there is none (nothing is written)."""
    if (vault_path / CONFIG_FILENAME).exists():
        return load_config(vault_path).settings
    return TagPageSettings()
