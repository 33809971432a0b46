"""
Configuration management for the graph crawler.

A single CrawlerConfig is built once per run and handed to every component
that needs it.
"""

import os
import math
import json
import logging
import threading
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Dict, Any, Optional

from jsonschema import validate, ValidationError

from graph_crawler.utils.errors import ConfigurationError


DEFAULT_SERVICE_URL = "http://hollywood-graph-crawler.bridgesuncc.org/neighbors/"
DEFAULT_USER_AGENT = "graph-crawler/1.0"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


# JSON Schema for configuration validation
CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "service_url": {"type": "string", "minLength": 1},
        "request_timeout": {"type": "number", "exclusiveMinimum": 0},
        "user_agent": {"type": "string", "minLength": 1},
        "max_workers": {"type": "integer", "minimum": 1},
        "debug": {"type": "boolean"},
        "log_level": {"type": "string", "enum": LOG_LEVELS},
        "log_file": {"type": ["string", "null"]}
    },
    "additionalProperties": False
}


@dataclass
class CrawlerConfig:
    """Settings shared by the neighbor service, worker pool and CLI."""
    service_url: str = DEFAULT_SERVICE_URL
    request_timeout: float = 10.0
    user_agent: str = DEFAULT_USER_AGENT
    max_workers: int = 8
    debug: bool = False
    log_level: str = "WARNING"
    log_file: Optional[str] = None

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.validate()

    def validate(self) -> None:
        """
        Validate configuration parameters.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        errors = []

        if not self.service_url:
            errors.append("service_url must not be empty")

        if not math.isfinite(self.request_timeout) or self.request_timeout <= 0:
            errors.append("request_timeout must be a finite number greater than 0")

        if not self.user_agent:
            errors.append("user_agent must not be empty")

        if isinstance(self.max_workers, bool) or not isinstance(self.max_workers, int) or self.max_workers < 1:
            errors.append("max_workers must be a positive integer")

        if self.log_level.upper() not in LOG_LEVELS:
            errors.append(f"log_level must be one of {', '.join(LOG_LEVELS)}")

        if errors:
            raise ConfigurationError(
                "Crawler configuration validation failed",
                {"errors": errors}
            )

    def neighbor_url(self, encoded_node: str) -> str:
        """Join the service URL with an already url-encoded node id."""
        base = self.service_url if self.service_url.endswith("/") else self.service_url + "/"
        return base + encoded_node


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class ConfigManager:
    """Loads CrawlerConfig from a JSON file and environment variables."""

    ENV_PREFIX = "GRAPH_CRAWLER_"

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path) if config_path else None
        self._config: Optional[CrawlerConfig] = None
        self._lock = threading.RLock()

    def validate_config(self, config_data: Dict[str, Any]) -> None:
        """Validate configuration data against schema."""
        try:
            validate(instance=config_data, schema=CONFIG_SCHEMA)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e.message}")

    def load_config(self) -> CrawlerConfig:
        """
        Load configuration from file (if any), then apply environment overrides.

        Raises:
            ConfigurationError: If the file is unreadable or invalid
        """
        with self._lock:
            config_data: Dict[str, Any] = {}

            if self.config_path is not None:
                if not self.config_path.exists():
                    raise ConfigurationError(
                        f"Configuration file not found: {self.config_path}",
                        {"path": str(self.config_path)}
                    )
                try:
                    with open(self.config_path, 'r', encoding='utf-8') as f:
                        config_data = json.load(f)
                except json.JSONDecodeError as e:
                    raise ConfigurationError(
                        f"Configuration file is not valid JSON: {e}",
                        {"path": str(self.config_path)}
                    )
                except (OSError, UnicodeDecodeError) as e:
                    raise ConfigurationError(
                        f"Configuration file could not be read: {e}",
                        {"path": str(self.config_path)}
                    )

                self.validate_config(config_data)
                logging.getLogger(__name__).info(f"Configuration loaded and validated from {self.config_path}")

            config_data.update(self._read_env_overrides())
            self._config = CrawlerConfig(**config_data)
            return self._config

    def _read_env_overrides(self) -> Dict[str, Any]:
        """Collect configuration overrides from environment variables."""
        overrides: Dict[str, Any] = {}

        service_url = os.getenv(f"{self.ENV_PREFIX}SERVICE_URL")
        if service_url:
            overrides["service_url"] = service_url

        timeout = os.getenv(f"{self.ENV_PREFIX}TIMEOUT")
        if timeout:
            try:
                overrides["request_timeout"] = float(timeout)
            except ValueError:
                raise ConfigurationError(
                    f"{self.ENV_PREFIX}TIMEOUT must be a number",
                    {"value": timeout}
                )

        user_agent = os.getenv(f"{self.ENV_PREFIX}USER_AGENT")
        if user_agent:
            overrides["user_agent"] = user_agent

        debug = os.getenv(f"{self.ENV_PREFIX}DEBUG")
        if debug:
            overrides["debug"] = _parse_bool(debug)

        log_level = os.getenv(f"{self.ENV_PREFIX}LOG_LEVEL")
        if log_level:
            overrides["log_level"] = log_level.upper()

        return overrides

    def export_config(self) -> Dict[str, Any]:
        """Export current configuration as dictionary."""
        with self._lock:
            if not self._config:
                return {}
            return asdict(self._config)
