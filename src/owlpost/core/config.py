"""
Application configuration with layered loading.

Configuration precedence (highest to lowest):
1. Environment variables
2. config.yml values
3. Default values defined here

The same settings object drives the session store backend, the LLM
endpoint, the response rewriting overlay and the notification channel.
"""
import os
import logging
from pathlib import Path
from typing import Dict, Any, List, Optional
from pydantic import BaseModel, Field
from dotenv import load_dotenv

from owlpost.core.logging import DEFAULT_FORMAT

# Load .env file first (lowest priority, will be overridden by config.yml and env vars)
load_dotenv()

logger = logging.getLogger(__name__)


# Intents whose results carry buttons or payloads that must not be paraphrased
DEFAULT_PRESERVE_INTENTS = [
    "offramp",
    "send",
    "send_reminder",
    "create_proposal",
    "create_invoice",
    "create_payment_link",
    "create_wallets",
]

# Intents whose text is itself a precise report (amounts, addresses)
DEFAULT_REPORT_INTENTS = [
    "balance",
    "get_wallet_balance",
    "wallet_balance",
    "get_wallet_address",
    "get_earnings",
    "earnings_summary",
    "get_spending",
]


def _find_project_root() -> Path:
    """Find the project root directory."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / "config.example.yml").exists() or (parent / "pyproject.toml").exists():
            return parent
    return Path(os.getenv("OWLPOST_ROOT", os.getcwd()))


def _load_yaml_config(config_path: Path) -> Dict[str, Any]:
    """Load configuration from YAML file if it exists."""
    if not config_path.exists():
        logger.debug(f"Config file not found: {config_path}")
        return {}

    try:
        import yaml
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}
        logger.info(f"Loaded configuration from {config_path}")
        return config
    except Exception as e:
        logger.error(f"Error loading config file {config_path}: {e}")
        return {}


def _get_nested(d: Dict, *keys, default=None):
    """Safely get a nested dictionary value."""
    for key in keys:
        if isinstance(d, dict):
            d = d.get(key, default)
        else:
            return default
    return d if d is not None else default


def _env_or_yaml(env_key: str, yaml_config: Dict, *yaml_keys, default=None):
    """Get value from environment variable, falling back to YAML config, then default."""
    env_value = os.getenv(env_key)
    if env_value is not None:
        return env_value

    yaml_value = _get_nested(yaml_config, *yaml_keys)
    if yaml_value is not None:
        return yaml_value

    return default


def _as_bool(value) -> bool:
    """Coerce env strings like 'false' / '0' into booleans."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _as_list(value) -> List[str]:
    """Accept either a YAML list or a comma separated env string."""
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    return [v.strip() for v in str(value).split(",") if v.strip()]


PROJECT_ROOT = _find_project_root()
YAML_CONFIG = _load_yaml_config(
    Path(os.getenv("OWLPOST_CONFIG_FILE", str(PROJECT_ROOT / "config.yml")))
)

_paths_root = _env_or_yaml("OWLPOST_ROOT", YAML_CONFIG, "paths", "root", default=str(PROJECT_ROOT))
_paths_data = _env_or_yaml("OWLPOST_DATA_PATH", YAML_CONFIG, "paths", "data", default=f"{_paths_root}/data")
_paths_logs = _env_or_yaml("OWLPOST_LOGS_PATH", YAML_CONFIG, "paths", "logs", default=f"{_paths_root}/logs")


class PathsConfig(BaseModel):
    """Path configuration."""
    root: Path = Path(_paths_root)
    data: Path = Path(_paths_data)
    logs: Path = Path(_paths_logs)


class AssistantConfig(BaseModel):
    """Assistant persona configuration."""
    name: str = _env_or_yaml("OWLPOST_ASSISTANT_NAME", YAML_CONFIG, "assistant", "name", default="Owlpost")


class LLMConfig(BaseModel):
    """LLM configuration."""
    base_url: str = _env_or_yaml("LLM_BASE_URL", YAML_CONFIG, "llm", "base_url", default="http://localhost:8000/v1")
    model_name: str = _env_or_yaml("LLM_MODEL_NAME", YAML_CONFIG, "llm", "model_name", default="gemini-2.0-flash")
    temperature: float = float(_env_or_yaml("LLM_TEMPERATURE", YAML_CONFIG, "llm", "temperature", default=0.2))
    max_tokens: int = int(_env_or_yaml("LLM_MAX_TOKENS", YAML_CONFIG, "llm", "max_tokens", default=1024))
    api_key: str = _env_or_yaml("LLM_API_KEY", YAML_CONFIG, "llm", "api_key", default="not-needed")


class SessionConfig(BaseModel):
    """Conversation session storage configuration."""
    backend: str = _env_or_yaml("OWLPOST_SESSION_BACKEND", YAML_CONFIG, "session", "backend", default="memory")
    path: Optional[str] = _env_or_yaml("OWLPOST_SESSION_PATH", YAML_CONFIG, "session", "path", default=None)
    max_turns: int = int(_env_or_yaml("OWLPOST_SESSION_MAX_TURNS", YAML_CONFIG, "session", "max_turns", default=10))
    cache_enabled: bool = _as_bool(
        _env_or_yaml("OWLPOST_SESSION_CACHE", YAML_CONFIG, "session", "cache_enabled", default=False)
    )
    serialize_per_user: bool = _as_bool(
        _env_or_yaml("OWLPOST_SESSION_SERIALIZE", YAML_CONFIG, "session", "serialize_per_user", default=False)
    )


class ResponseConfig(BaseModel):
    """Natural response rewriting configuration."""
    natural_responses: bool = _as_bool(
        _env_or_yaml("OWLPOST_NATURAL_RESPONSES", YAML_CONFIG, "response", "natural_responses", default=True)
    )
    preserve_intents: List[str] = _as_list(
        _env_or_yaml("OWLPOST_PRESERVE_INTENTS", YAML_CONFIG, "response", "preserve_intents",
                     default=DEFAULT_PRESERVE_INTENTS)
    )
    report_intents: List[str] = _as_list(
        _env_or_yaml("OWLPOST_REPORT_INTENTS", YAML_CONFIG, "response", "report_intents",
                     default=DEFAULT_REPORT_INTENTS)
    )


class NotificationsConfig(BaseModel):
    """Outbound notification channel configuration."""
    webhook_url: str = _env_or_yaml("OWLPOST_WEBHOOK_URL", YAML_CONFIG, "notifications", "webhook_url", default="")
    timeout_seconds: float = float(
        _env_or_yaml("OWLPOST_WEBHOOK_TIMEOUT", YAML_CONFIG, "notifications", "timeout_seconds", default=10.0)
    )


class AuthConfig(BaseModel):
    """API authentication configuration."""
    api_key: Optional[str] = _env_or_yaml("OWLPOST_API_KEY", YAML_CONFIG, "auth", "api_key", default=None)


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = _env_or_yaml("OWLPOST_LOG_LEVEL", YAML_CONFIG, "logging", "level", default="INFO")
    format: str = _get_nested(YAML_CONFIG, "logging", "format", default=DEFAULT_FORMAT)


class Settings(BaseModel):
    """
    Application settings with layered configuration.

    Configuration is loaded from (in order of precedence):
    1. Environment variables
    2. config.yml
    3. Default values
    """

    paths: PathsConfig = Field(default_factory=PathsConfig)
    assistant: AssistantConfig = Field(default_factory=AssistantConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    response: ResponseConfig = Field(default_factory=ResponseConfig)
    notifications: NotificationsConfig = Field(default_factory=NotificationsConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    class Config:
        arbitrary_types_allowed = True

    @property
    def session_path(self) -> Path:
        """Where file and sqlite session backends keep their data."""
        if self.session.path:
            return Path(self.session.path)
        if (self.session.backend or "").lower() == "sqlite":
            return self.paths.data / "sessions.db"
        return self.paths.data / "sessions"

    @property
    def api_key(self) -> Optional[str]:
        """API key required by the HTTP surface, if any."""
        return self.auth.api_key

    @property
    def max_turns(self) -> int:
        """Session turn bound, clamped to a sane range."""
        return max(2, min(50, self.session.max_turns))


settings = Settings()


def get_config_source(key: str) -> str:
    """
    Get the source of a configuration value.

    Returns 'env', 'yaml', or 'default'.
    """
    env_key = key.upper().replace(".", "_")
    if os.getenv(env_key) is not None:
        return "env"

    keys = key.split(".")
    yaml_value = _get_nested(YAML_CONFIG, *keys)
    if yaml_value is not None:
        return "yaml"

    return "default"


def reload_config():
    """Reload configuration from files."""
    global YAML_CONFIG, settings
    YAML_CONFIG = _load_yaml_config(
        Path(os.getenv("OWLPOST_CONFIG_FILE", str(PROJECT_ROOT / "config.yml")))
    )
    settings = Settings()
    logger.info("Configuration reloaded")
    return settings
