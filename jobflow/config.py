"""
Configuration Loader for JobFlow

Loads settings from an optional config.yaml and overlays environment
variables (read from .env by python-dotenv). Every setting has a default,
so the service runs with no config file at all.
"""

import copy
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

ROOT_DIR = Path(__file__).parent.parent
DEFAULT_CONFIG_PATH = ROOT_DIR / "config.yaml"

DEFAULT_QUERY = "subject:(job OR jobs OR vacancy OR career OR hiring OR opportunity)"

EXTRACTORS = ("heuristic", "ai")
AI_PROVIDERS = ("claude", "gemini")

DEFAULTS: Dict[str, Any] = {
    "app": {"env": "development"},
    "database": {"path": str(ROOT_DIR / "jobflow.db")},
    "auth": {
        "jwt_key": None,
        "jwt_secret": None,
        "jwks_url": None,
        "algorithms": ["RS256"],
        "audience": None,
        "issuer": None,
    },
    "scan": {
        "batch_size": 5,
        "watchdog_seconds": 90,
        "batch_pause_seconds": 0.1,
        "max_messages": 30,
        "default_days": 3,
        "query": DEFAULT_QUERY,
        "extractor": "heuristic",
        "request_timeout": 10,
    },
    "ai": {"provider": "claude", "model": None},
    "logging": {"level": None, "json": False, "file": None, "operation_logs": False},
}

# Environment variable -> (section, key)
ENV_OVERRIDES = {
    "FLASK_ENV": ("app", "env"),
    "DATABASE_PATH": ("database", "path"),
    "AUTH_JWT_KEY": ("auth", "jwt_key"),
    "AUTH_JWT_SECRET": ("auth", "jwt_secret"),
    "AUTH_JWKS_URL": ("auth", "jwks_url"),
    "AUTH_AUDIENCE": ("auth", "audience"),
    "AUTH_ISSUER": ("auth", "issuer"),
    "AI_PROVIDER": ("ai", "provider"),
    "AI_MODEL": ("ai", "model"),
    "LOG_LEVEL": ("logging", "level"),
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class Config:
    """Configuration manager for JobFlow."""

    def __init__(
        self,
        config_path: Optional[Path] = None,
        overrides: Optional[Dict[str, Any]] = None,
        use_env: bool = True,
    ):
        """
        Initialize configuration.

        Args:
            config_path: Path to config.yaml. When omitted, ./config.yaml is
                used if it exists; an explicit path must exist.
            overrides: Nested dict applied last (tests, app factory)
            use_env: Whether environment variables override file values
        """
        self.config_path = config_path
        self._overrides = overrides or {}
        self._use_env = use_env
        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from defaults, YAML file, env and overrides."""
        file_config: Dict[str, Any] = {}

        if self.config_path is not None:
            path = Path(self.config_path)
            if not path.exists():
                raise FileNotFoundError(
                    f"Config file not found: {path}\n"
                    f"Copy config.example.yaml to config.yaml and adjust it."
                )
            file_config = self._read_yaml(path)
        elif DEFAULT_CONFIG_PATH.exists():
            file_config = self._read_yaml(DEFAULT_CONFIG_PATH)

        config = _merge(DEFAULTS, file_config)

        if self._use_env:
            for env_var, (section, key) in ENV_OVERRIDES.items():
                value = os.environ.get(env_var)
                if value:
                    config[section][key] = value

        config = _merge(config, self._overrides)
        self._validate_config(config)
        return config

    @staticmethod
    def _read_yaml(path: Path) -> Dict[str, Any]:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {path}")
        return data

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """Validate value ranges and closed choices."""
        scan = config["scan"]

        if int(scan["batch_size"]) < 1:
            raise ValueError("scan.batch_size must be at least 1")
        if float(scan["watchdog_seconds"]) <= 0:
            raise ValueError("scan.watchdog_seconds must be positive")
        if float(scan["batch_pause_seconds"]) < 0:
            raise ValueError("scan.batch_pause_seconds cannot be negative")
        if int(scan["max_messages"]) < 1:
            raise ValueError("scan.max_messages must be at least 1")
        if scan["extractor"] not in EXTRACTORS:
            raise ValueError(
                f"Unknown scan.extractor: '{scan['extractor']}'. "
                f"Expected one of: {', '.join(EXTRACTORS)}"
            )

        provider = str(config["ai"]["provider"]).lower()
        if provider not in AI_PROVIDERS:
            raise ValueError(
                f"Unknown ai.provider: '{provider}'. "
                f"Expected one of: {', '.join(AI_PROVIDERS)}"
            )

    # ===== APP =====

    @property
    def env(self) -> str:
        return self._config["app"]["env"]

    @property
    def database_path(self) -> str:
        return str(self._config["database"]["path"])

    # ===== AUTH =====

    @property
    def auth(self) -> Dict[str, Any]:
        return self._config["auth"]

    @property
    def auth_algorithms(self) -> List[str]:
        algorithms = self._config["auth"]["algorithms"]
        if isinstance(algorithms, str):
            algorithms = [a.strip() for a in algorithms.split(",") if a.strip()]
        return list(algorithms)

    # ===== SCAN =====

    @property
    def scan_batch_size(self) -> int:
        return int(self._config["scan"]["batch_size"])

    @property
    def scan_watchdog_seconds(self) -> float:
        return float(self._config["scan"]["watchdog_seconds"])

    @property
    def scan_batch_pause_seconds(self) -> float:
        return float(self._config["scan"]["batch_pause_seconds"])

    @property
    def scan_max_messages(self) -> int:
        return int(self._config["scan"]["max_messages"])

    @property
    def scan_default_days(self) -> int:
        return int(self._config["scan"]["default_days"])

    @property
    def scan_query(self) -> str:
        return self._config["scan"]["query"]

    @property
    def scan_extractor(self) -> str:
        return self._config["scan"]["extractor"]

    @property
    def scan_request_timeout(self) -> float:
        return float(self._config["scan"]["request_timeout"])

    # ===== AI =====

    @property
    def ai_provider(self) -> str:
        return str(self._config["ai"]["provider"]).lower()

    @property
    def ai_model(self) -> Optional[str]:
        return self._config["ai"].get("model")

    # ===== LOGGING =====

    @property
    def logging(self) -> Dict[str, Any]:
        return self._config["logging"]

    # ===== UTILITY METHODS =====

    def to_dict(self) -> Dict[str, Any]:
        """Return a copy of the resolved configuration dictionary."""
        return copy.deepcopy(self._config)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation key.

        Example: config.get('scan.batch_size')
        """
        value: Any = self._config
        for k in key.split("."):
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default
        return value


# Global config instance
_config: Optional[Config] = None


def get_config(config_path: Optional[Path] = None) -> Config:
    """
    Get global configuration instance.
    Creates instance on first call, then returns cached instance.
    """
    global _config
    if _config is None:
        _config = Config(config_path=config_path)
    return _config


def set_config(config: Config) -> None:
    """Install a specific configuration as the global instance."""
    global _config
    _config = config


def reset_config() -> None:
    """Drop the cached configuration (used by tests)."""
    global _config
    _config = None
