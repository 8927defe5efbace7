import os
import re
from functools import lru_cache
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file early so env vars are available for YAML interpolation
# Use explicit path to handle subprocess spawning (hypercorn workers)
_env_file = Path(__file__).parent.parent / ".env"
load_dotenv(_env_file)

# Pattern to match $VAR_NAME environment variable references
ENV_VAR_PATTERN = re.compile(r"\$([A-Z_][A-Z0-9_]*)")

ENV_VAR_NAME = "STAYNC_ENV"

_config_path_override: Path | None = None


def set_config_path(path: str | Path | None) -> None:
    """Force a specific config file, bypassing environment-based resolution."""
    global _config_path_override
    _config_path_override = Path(path) if path is not None else None


def get_config_path() -> Path:
    """Resolve the YAML config file.

    An explicit override wins. Otherwise ``STAYNC_ENV=staging`` selects
    ``app.staging.yaml`` and no environment selects ``app.yaml``, both
    relative to the working directory.
    """
    if _config_path_override is not None:
        return _config_path_override

    env = os.environ.get(ENV_VAR_NAME, "").strip().lower()
    if env and env != "production":
        return Path.cwd() / f"app.{env}.yaml"
    return Path.cwd() / "app.yaml"


def interpolate_env_vars(value):
    """Recursively replace $VAR_NAME with os.environ values."""
    if isinstance(value, str):

        def replace(match):
            var = match.group(1)
            val = os.environ.get(var)
            if val is None:
                raise ValueError(f"Environment variable ${var} not set")
            return val

        return ENV_VAR_PATTERN.sub(replace, value)
    elif isinstance(value, dict):
        return {k: interpolate_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [interpolate_env_vars(item) for item in value]
    return value


def load_app_config() -> dict:
    """Load and parse the YAML config with environment variable interpolation."""
    config_path = get_config_path()

    if not config_path.exists():
        raise FileNotFoundError(f"{config_path.name} not found at {config_path}")

    with open(config_path, "r") as f:
        config = yaml.safe_load(f) or {}

    return interpolate_env_vars(config)


class DatabaseConfig(BaseModel):
    """Database connection configuration."""

    url: str = "sqlite+aiosqlite:///./app.db"
    pool_size: int = 5
    pool_overflow: int = 10
    pool_timeout: int = 30
    pool_pre_ping: bool = True
    echo: bool = False


class OAuthProviderConfig(BaseModel):
    """OAuth provider configuration."""

    client_id: str = ""
    client_secret: str = ""
    scopes: list[str] = ["openid", "email", "profile"]


class AuthConfig(BaseModel):
    """Authentication configuration."""

    redirect_base_url: str = "http://localhost:8080"
    providers: dict[str, OAuthProviderConfig] = {}
    allowed_redirect_domains: list[str] = []
    password_signup: bool = True
    password_min_length: int = 8

    def get_redirect_uri(self, provider: str) -> str:
        """Get the OAuth callback URL for a provider."""
        return f"{self.redirect_base_url}/auth/{provider}/callback"


class SessionConfig(BaseModel):
    """Cookie session configuration."""

    cookie_name: str = "session"
    max_age: int = 86400 * 30
    cookie_domain: str | None = None
    secure: bool = False


class S3Config(BaseModel):
    bucket: str = ""
    region: str = "us-east-1"
    endpoint_url: str | None = None
    access_key_id: str = ""
    secret_access_key: str = ""
    prefix: str = ""
    public_url: str = ""
    presign_ttl: int = 3600
    acl: str = "private"


class StoreConfig(BaseModel):
    """A single named storage backend."""

    backend: str = "local"
    local_path: str = "./uploads"
    s3: S3Config = S3Config()


class StorageConfig(BaseModel):
    default: str = "uploads"
    stores: dict[str, StoreConfig] = {"uploads": StoreConfig()}

    def get_store(self, name: str | None = None) -> StoreConfig:
        name = name or self.default
        if name not in self.stores:
            raise KeyError(f"Unknown storage store {name!r}")
        return self.stores[name]


class RedisConfig(BaseModel):
    url: str = ""
    prefix: str = "staync"

    def make_key(self, *parts: str) -> str:
        return ":".join([self.prefix, *parts]) if self.prefix else ":".join(parts)


class RealtimeConfig(BaseModel):
    """Realtime fan-out configuration.

    ``backend`` is a ``module:ClassName`` import path; empty means the
    in-process backend, which only reaches clients on the same worker.
    """

    backend: str = ""
    keepalive_seconds: float = 30.0


class AIConfig(BaseModel):
    """Caption generation and embedding settings."""

    api_key: str = ""
    base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    model: str = "gemini-2.5-flash"
    embedding_model: str = "text-embedding-004"
    language: str = "Korean"
    timeout: float = 60.0


class UploadConfig(BaseModel):
    max_bytes: int = 10 * 1024 * 1024
    allowed_types: list[str] = [
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "video/mp4",
        "video/webm",
    ]


class LogfireConfig(BaseModel):
    enabled: bool = False
    service_name: str = "staync"
    environment: str | None = None
    sample_rate: float = 1.0
    console: bool = False


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Application
    debug: bool = False
    secret_key: str

    db: DatabaseConfig = DatabaseConfig()
    auth: AuthConfig = AuthConfig()
    session: SessionConfig = SessionConfig()
    storage: StorageConfig = StorageConfig()
    redis: RedisConfig = RedisConfig()
    realtime: RealtimeConfig = RealtimeConfig()
    ai: AIConfig = AIConfig()
    upload: UploadConfig = UploadConfig()
    logfire: LogfireConfig = LogfireConfig()


_SECTIONS: dict[str, type[BaseModel]] = {
    "db": DatabaseConfig,
    "auth": AuthConfig,
    "session": SessionConfig,
    "storage": StorageConfig,
    "redis": RedisConfig,
    "realtime": RealtimeConfig,
    "ai": AIConfig,
    "upload": UploadConfig,
    "logfire": LogfireConfig,
}


@lru_cache
def get_settings() -> Settings:
    """Load settings from .env and the YAML config file."""
    base_settings = Settings()

    try:
        app_config = load_app_config()
    except FileNotFoundError:
        return base_settings

    if app_config.get("environment"):
        os.environ[ENV_VAR_NAME] = str(app_config["environment"])

    updates = {}

    if "debug" in app_config:
        updates["debug"] = bool(app_config["debug"])

    for key, model in _SECTIONS.items():
        if key in app_config and app_config[key] is not None:
            updates[key] = model(**app_config[key])

    if updates:
        return base_settings.model_copy(update=updates)

    return base_settings


def clear_settings_cache() -> None:
    get_settings.cache_clear()
