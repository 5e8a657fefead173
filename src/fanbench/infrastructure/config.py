"""Configuration management with hierarchical loading."""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from fanbench.infrastructure.logger import get_logger

logger = get_logger(__name__)


class PoolConfig(BaseModel):
    """Bounded pool configuration."""

    capacity: int = Field(default=200, ge=1)
    shutdown_timeout_seconds: float = Field(default=30.0, gt=0)


class TransportConfig(BaseModel):
    """HTTP transport configuration."""

    base_url: str = "http://localhost:8080"
    connect_timeout_seconds: float = Field(default=5.0, gt=0)
    read_timeout_seconds: float = Field(default=30.0, gt=0)
    # Route requests to the in-process simulated endpoint instead of base_url
    simulated: bool = True


class EndpointConfig(BaseModel):
    """Simulated endpoint configuration."""

    seed: int | None = None
    value_upper_bound: int = Field(default=1000, ge=1)


class SweepConfig(BaseModel):
    """Default sweep parameters."""

    max_api_count: int = Field(default=1000, ge=0)
    delay_ms: int = Field(default=100, ge=0)
    step: int = Field(default=100, ge=1)


class LoadTestConfig(BaseModel):
    """Default load test parameters."""

    concurrent_users: int = Field(default=100, ge=0)
    api_count: int = Field(default=20, ge=0)
    delay_ms: int = Field(default=100, ge=0)


class MonitoringConfig(BaseModel):
    """Resource monitoring and logging configuration."""

    enabled: bool = True
    sample_interval_seconds: float = Field(default=0.05, gt=0)
    log_to_file: bool = False


class Config(BaseModel):
    """Main configuration model."""

    version: str = "0.1.0"
    log_level: str = "INFO"
    pool: PoolConfig = Field(default_factory=PoolConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)
    endpoint: EndpointConfig = Field(default_factory=EndpointConfig)
    sweep: SweepConfig = Field(default_factory=SweepConfig)
    load_test: LoadTestConfig = Field(default_factory=LoadTestConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)


class ConfigManager:
    """Manage configuration loading from multiple sources with hierarchy."""

    ENV_MAPPINGS: dict[str, list[str]] = {
        "FANBENCH_LOG_LEVEL": ["log_level"],
        "FANBENCH_POOL_CAPACITY": ["pool", "capacity"],
        "FANBENCH_POOL_SHUTDOWN_TIMEOUT": ["pool", "shutdown_timeout_seconds"],
        "FANBENCH_BASE_URL": ["transport", "base_url"],
        "FANBENCH_CONNECT_TIMEOUT": ["transport", "connect_timeout_seconds"],
        "FANBENCH_READ_TIMEOUT": ["transport", "read_timeout_seconds"],
        "FANBENCH_SIMULATED": ["transport", "simulated"],
        "FANBENCH_SEED": ["endpoint", "seed"],
        "FANBENCH_MONITORING_ENABLED": ["monitoring", "enabled"],
    }

    def __init__(self, project_root: Path | None = None) -> None:
        """Initialize config manager.

        Args:
            project_root: Root directory of the project (default: current directory)
        """
        self.project_root = project_root or Path.cwd()
        self._config: Config | None = None

    def load_config(self) -> Config:
        """Load configuration from all sources in hierarchy order.

        Configuration hierarchy (highest priority last):
        1. System defaults (embedded in Config model)
        2. Project defaults (.fanbench/config.yaml)
        3. User overrides (~/.fanbench/config.yaml)
        4. Project-local overrides (.fanbench/local.yaml)
        5. Environment variables (FANBENCH_* prefix)

        Returns:
            Merged configuration
        """
        if self._config is not None:
            return self._config

        config_dict: dict[str, Any] = {}

        for path in (
            self.project_root / ".fanbench" / "config.yaml",
            Path.home() / ".fanbench" / "config.yaml",
            self.project_root / ".fanbench" / "local.yaml",
        ):
            if path.exists():
                config_dict = self._merge_dicts(config_dict, self._load_yaml(path))
                logger.debug("config_file_loaded", path=str(path))

        config_dict = self._apply_env_vars(config_dict)

        self._config = Config(**config_dict)
        return self._config

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        """Load YAML configuration file."""
        with open(path) as f:
            return yaml.safe_load(f) or {}

    def _merge_dicts(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Recursively merge two dictionaries."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_dicts(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_vars(self, config_dict: dict[str, Any]) -> dict[str, Any]:
        """Apply environment variables with FANBENCH_ prefix.

        Values are passed through as strings (or ints when they parse as one);
        pydantic coerces them to floats and booleans during validation.
        """
        for env_var, path in self.ENV_MAPPINGS.items():
            value = os.getenv(env_var)
            if value is None:
                continue

            current = config_dict
            for key in path[:-1]:
                if key not in current:
                    current[key] = {}
                current = current[key]
            try:
                current[path[-1]] = int(value)
            except ValueError:
                current[path[-1]] = value

        return config_dict

    def get_log_dir(self) -> Path:
        """Get path to log directory."""
        log_dir = self.project_root / ".fanbench" / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        return log_dir
