"""Configuration management for nextjs-indexing-pack.

Supports TOML configuration format with auto-discovery.
"""

import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from nextjs_indexing_pack.google import NOTIFICATION_TYPES
from nextjs_indexing_pack.routes import DEFAULT_BUILD_DIR

CONFIG_FILENAME = "nextjs-indexing-pack.toml"


@dataclass
class SiteConfig:
    """Site configuration."""

    base_url: str | None = None
    build_dir: Path = field(default_factory=lambda: Path(DEFAULT_BUILD_DIR))


@dataclass
class IndexNowConfig:
    """IndexNow configuration."""

    key: str | None = None
    key_location: str | None = None
    endpoints: list[str] | None = None


@dataclass
class GoogleConfig:
    """Google Indexing API configuration."""

    service_account: Path | None = None
    notification_type: str | None = None


@dataclass
class Config:
    """Application configuration."""

    site: SiteConfig = field(default_factory=SiteConfig)
    indexnow: IndexNowConfig = field(default_factory=IndexNowConfig)
    google: GoogleConfig = field(default_factory=GoogleConfig)
    config_path: Path | None = None

    @classmethod
    def load(cls, config_path: Path | None = None) -> "Config":
        """Load configuration from file.

        If config_path is provided, loads from that file.
        Otherwise, searches for the config file in current directory and parents.

        Args:
            config_path: Optional explicit path to config file

        Returns:
            Config instance with defaults for missing sections

        Raises:
            FileNotFoundError: If explicit config_path doesn't exist
            ValueError: If configuration is invalid
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return cls._load_from_file(config_path)

        discovered_path = cls._discover_config()
        if discovered_path is None:
            return cls()

        return cls._load_from_file(discovered_path)

    @classmethod
    def _discover_config(cls) -> Path | None:
        """Search for config file in current directory and parents.

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        while True:
            candidate = current / CONFIG_FILENAME
            if candidate.exists():
                return candidate
            parent = current.parent
            if parent == current:
                return None
            current = parent

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        """Load configuration from a specific file.

        Args:
            path: Path to TOML configuration file

        Returns:
            Config instance

        Raises:
            ValueError: If configuration is invalid
        """
        with path.open("rb") as f:
            try:
                data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ValueError(f"Invalid configuration file {path}: {e}") from e

        config_dir = path.parent
        return cls(
            site=cls._parse_site(data.get("site"), config_dir),
            indexnow=cls._parse_indexnow(data.get("indexnow")),
            google=cls._parse_google(data.get("google"), config_dir),
            config_path=path,
        )

    @classmethod
    def _parse_site(cls, data: object, config_dir: Path) -> SiteConfig:
        """Parse site configuration section.

        Relative build_dir is resolved against the config file directory.
        """
        if data is None:
            return SiteConfig(build_dir=config_dir / DEFAULT_BUILD_DIR)

        if not isinstance(data, dict):
            raise ValueError("site section must be a dictionary")

        base_url = data.get("base_url")
        if base_url is not None and not isinstance(base_url, str):
            raise ValueError("site.base_url must be a string")

        build_dir = data.get("build_dir", DEFAULT_BUILD_DIR)
        if not isinstance(build_dir, str):
            raise ValueError("site.build_dir must be a string")

        return SiteConfig(base_url=base_url, build_dir=config_dir / build_dir)

    @classmethod
    def _parse_indexnow(cls, data: object) -> IndexNowConfig:
        """Parse indexnow configuration section."""
        if data is None:
            return IndexNowConfig()

        if not isinstance(data, dict):
            raise ValueError("indexnow section must be a dictionary")

        key = data.get("key")
        if key is not None and not isinstance(key, str):
            raise ValueError("indexnow.key must be a string")

        key_location = data.get("key_location")
        if key_location is not None and not isinstance(key_location, str):
            raise ValueError("indexnow.key_location must be a string")

        endpoints = data.get("endpoints")
        if endpoints is not None:
            if not isinstance(endpoints, list) or not all(
                isinstance(endpoint, str) for endpoint in endpoints
            ):
                raise ValueError("indexnow.endpoints must be a list of strings")

        return IndexNowConfig(key=key, key_location=key_location, endpoints=endpoints)

    @classmethod
    def _parse_google(cls, data: object, config_dir: Path) -> GoogleConfig:
        """Parse google configuration section.

        Relative service_account path is resolved against the config file directory.
        """
        if data is None:
            return GoogleConfig()

        if not isinstance(data, dict):
            raise ValueError("google section must be a dictionary")

        service_account = data.get("service_account")
        if service_account is not None and not isinstance(service_account, str):
            raise ValueError("google.service_account must be a string")

        notification_type = data.get("notification_type")
        if notification_type is not None and notification_type not in NOTIFICATION_TYPES:
            raise ValueError(
                f"google.notification_type must be one of {', '.join(NOTIFICATION_TYPES)}"
            )

        return GoogleConfig(
            service_account=config_dir / service_account if service_account else None,
            notification_type=notification_type,
        )

    def to_toml(self, relative_to: Path | None = None) -> str:
        """Render the configuration as TOML.

        Only values that are set are written. Paths under relative_to are
        written relative to it.

        Args:
            relative_to: Directory the config file will live in

        Returns:
            TOML document
        """

        def path_value(path: Path) -> str:
            if relative_to is not None:
                resolved = path.resolve()
                if resolved.is_relative_to(relative_to):
                    return resolved.relative_to(relative_to).as_posix()
            return path.as_posix()

        sections: dict[str, dict[str, str | list[str]]] = {
            "site": {},
            "indexnow": {},
            "google": {},
        }
        if self.site.base_url is not None:
            sections["site"]["base_url"] = self.site.base_url
        build_dir = path_value(self.site.build_dir)
        if build_dir != DEFAULT_BUILD_DIR:
            sections["site"]["build_dir"] = build_dir
        if self.indexnow.key is not None:
            sections["indexnow"]["key"] = self.indexnow.key
        if self.indexnow.key_location is not None:
            sections["indexnow"]["key_location"] = self.indexnow.key_location
        if self.indexnow.endpoints is not None:
            sections["indexnow"]["endpoints"] = self.indexnow.endpoints
        if self.google.service_account is not None:
            sections["google"]["service_account"] = path_value(self.google.service_account)
        if self.google.notification_type is not None:
            sections["google"]["notification_type"] = self.google.notification_type

        blocks = []
        for name, values in sections.items():
            if not values:
                continue
            # JSON strings and string arrays are valid TOML values
            lines = [f"[{name}]"] + [f"{key} = {json.dumps(value)}" for key, value in values.items()]
            blocks.append("\n".join(lines))
        return "\n\n".join(blocks) + "\n"

    def save(self, path: Path) -> str:
        """Write the configuration to a TOML file.

        Args:
            path: Destination file

        Returns:
            "created" or "updated"
        """
        status = "updated" if path.exists() else "created"
        path.write_text(self.to_toml(relative_to=path.parent.resolve()), encoding="utf-8")
        return status
