"""
Config Manager

Loads config/lifecycle.yaml, falls back to built-in defaults, then applies
environment overrides and produces a LifecycleConfig.
"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
from utils.logger import get_logger, LogCategory
from models.config import LifecycleConfig
from models.enums import LogLevel

log = get_logger().for_category(LogCategory.CONFIG)


DEFAULTS: Dict[str, Any] = {
    "server": {
        "host": "0.0.0.0",
        "port": 9000,
    },
    "readiness": {
        "period_seconds": 10,
        "failure_threshold": 3,
    },
    "shutdown": {
        "handler_timeout": 5.0,
    },
    "logging": {
        "level": "INFO",
        "enabled": True,
    },
}

# env var -> (section, key, parser)
ENV_OVERRIDES = {
    "LIFECYCLE_HOST": ("server", "host", str),
    "LIFECYCLE_PORT": ("server", "port", int),
    "READINESS_PERIOD_SECONDS": ("readiness", "period_seconds", float),
    "READINESS_FAILURE_THRESHOLD": ("readiness", "failure_threshold", int),
    "LOG_LEVEL": ("logging", "level", str),
}


class ConfigManager:
    """
    Lifecycle configuration loader

    Sources, lowest priority first:
    1. DEFAULTS
    2. config/lifecycle.yaml (relative to src/), if present and valid
    3. Environment variables (ENV_OVERRIDES, KUBERNETES_SERVICE_HOST, APP_ENV)

    Example:
        config = ConfigManager().load()
        lifecycle = create_lifecycle_server(config)
    """

    def __init__(self, config_path: str = "config/lifecycle.yaml", environ: Optional[Mapping[str, str]] = None):
        """
        Initialize ConfigManager

        Args:
            config_path: Path to lifecycle.yaml (relative to src/, or absolute)
            environ: Environment mapping (default: os.environ)
        """
        self.config_path = Path(config_path)
        self.environ = os.environ if environ is None else environ
        self.data: Dict[str, Any] = {}

    def _resolve_path(self) -> Path:
        if self.config_path.is_absolute():
            return self.config_path
        src_dir = Path(__file__).parent.parent
        return src_dir / self.config_path

    def _load_yaml(self) -> Dict[str, Any]:
        full_path = self._resolve_path()
        if not full_path.exists():
            log.info("No lifecycle.yaml found, using defaults", path=str(full_path))
            return {}

        try:
            with open(full_path, "r", encoding="utf-8") as f:
                file_data = yaml.safe_load(f) or {}
            if not isinstance(file_data, dict):
                raise ValueError("top-level YAML value must be a mapping")
            log.info("Loaded lifecycle.yaml", keys=str(list(file_data.keys())))
            return file_data
        except (OSError, yaml.YAMLError, ValueError) as ex:
            log.error("Failed to load lifecycle.yaml", error=str(ex), error_type=type(ex).__name__)
            log.warn("Falling back to defaults")
            return {}

    def _merge(self, file_data: Dict[str, Any]) -> Dict[str, Any]:
        merged = {section: dict(values) for section, values in DEFAULTS.items()}
        for section, values in file_data.items():
            if isinstance(values, dict):
                merged.setdefault(section, {}).update(values)
            else:
                log.warn(f"Ignoring non-mapping section '{section}'")
        return merged

    def _apply_env(self, data: Dict[str, Any]) -> None:
        for var, (section, key, parser) in ENV_OVERRIDES.items():
            raw = self.environ.get(var)
            if raw is None or raw == "":
                continue
            try:
                data[section][key] = parser(raw)
                log.debug(f"Override from {var}", value=raw)
            except ValueError:
                log.warn(f"Ignoring invalid {var}", value=raw)

    def load(self) -> LifecycleConfig:
        """
        Build the LifecycleConfig.

        Returns:
            LifecycleConfig (startup_tasks / shutdown_callback left empty for the host)
        """
        data = self._merge(self._load_yaml())
        self._apply_env(data)
        self.data = data

        production = self.environ.get("APP_ENV", "").lower() == "production"
        orchestrated = bool(self.environ.get("KUBERNETES_SERVICE_HOST"))

        level_name = str(data["logging"]["level"]).upper()
        if level_name == "WARNING":
            level_name = "WARN"
        try:
            log_level = LogLevel[level_name]
        except KeyError:
            log.warn(f"Unknown log level '{level_name}', using INFO")
            log_level = LogLevel.INFO

        config = LifecycleConfig(
            host=data["server"]["host"],
            port=int(data["server"]["port"]),
            readiness_period_seconds=data["readiness"]["period_seconds"],
            readiness_failure_threshold=data["readiness"]["failure_threshold"],
            orchestrated=orchestrated,
            production=production,
            handler_timeout=float(data["shutdown"]["handler_timeout"]),
            log_level=log_level,
            log_colors=data["logging"].get("colors", not production),
            log_enabled=bool(data["logging"]["enabled"]),
            log_pretty=data["logging"].get("pretty", not production),
        )

        log.info(
            "Lifecycle config ready",
            port=config.port,
            orchestrated=orchestrated,
            production=production,
            grace_delay_s=config.grace_delay_seconds,
        )
        return config
