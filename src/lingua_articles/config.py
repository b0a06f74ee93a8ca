"""Application configuration using pydantic-settings."""

import functools
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

# Used when config/profiles.yaml is missing or does not list an identity.
BUILTIN_PROFILE_DEFAULTS: dict[str, dict[str, str]] = {
    "user1": {
        "name": "NAMICHI",
        "description": "スペイン語学習者、スペインのニュースを読むのが好き",
    },
    "user2": {
        "name": "JOSÉ",
        "description": "スペイン語話者、日本語を学習中",
    },
}


def _find_project_root() -> Path:
    """Find project root by locating pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path(__file__).resolve().parent.parent.parent


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from settings.yaml."""

    def get_field_value(self, field_name: str) -> tuple[Any, str, bool]:
        """Not used - we implement __call__ instead."""
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        """Load settings from YAML file."""
        yaml_path = _find_project_root() / "config" / "settings.yaml"
        if not yaml_path.exists():
            return {}

        with open(yaml_path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        # Flatten nested structure to match Settings field names
        flattened = {}
        server = data.get('server') or {}
        flattened['host'] = server.get('host')
        flattened['port'] = server.get('port')
        backend = data.get('backend') or {}
        flattened['backend'] = backend.get('kind')
        flattened['backend_url'] = backend.get('url')
        flattened['backend_timeout_seconds'] = backend.get('timeout_seconds')
        flattened['local_store_dir'] = (data.get('local_store') or {}).get('dir')

        # Remove None values
        return {k: v for k, v in flattened.items() if v is not None}


class Settings(BaseSettings):
    """Application settings loaded from environment and config files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Backend: "postgrest" talks to a hosted table API, "memory" keeps tables
    # in-process, "local" uses the legacy key-value files only.
    backend: Literal["postgrest", "memory", "local"] = Field(default="memory")
    backend_url: str | None = Field(default=None)
    backend_key: str | None = Field(default=None)
    # None leaves timeouts to the transport
    backend_timeout_seconds: float | None = Field(default=None)

    local_store_dir: Path | None = Field(default=None)

    # Authentication (optional: None disables auth)
    app_secret: str | None = Field(default=None)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    allowed_origins: str = Field(default="http://localhost:8000,http://127.0.0.1:8000")

    # Paths
    project_root: Path = Field(default_factory=_find_project_root)

    @property
    def local_store_path(self) -> Path:
        d = self.local_store_dir or self.project_root / "data" / "local_store"
        d.mkdir(parents=True, exist_ok=True)
        return d

    @property
    def origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customise settings sources to include YAML file.

        Priority order (highest to lowest):
        1. init_settings (arguments passed to Settings())
        2. env_settings (environment variables)
        3. dotenv_settings (.env file)
        4. YamlSettingsSource (settings.yaml)
        5. file_secret_settings
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlSettingsSource(settings_cls),
            file_secret_settings,
        )


@functools.lru_cache
def get_settings() -> Settings:
    """Get application settings singleton."""
    return Settings()


def load_profile_defaults() -> dict[str, dict[str, str]]:
    """Load per-identity display name/description from profiles.yaml.

    Entries in the file override the built-in ones key by key.
    """
    defaults = {k: dict(v) for k, v in BUILTIN_PROFILE_DEFAULTS.items()}
    profiles_path = _find_project_root() / "config" / "profiles.yaml"
    if not profiles_path.exists():
        return defaults
    with open(profiles_path, encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    for identity, entry in (data.get('profiles') or {}).items():
        defaults.setdefault(identity, {}).update(
            {k: str(v) for k, v in (entry or {}).items() if k in ("name", "description")}
        )
    return defaults
