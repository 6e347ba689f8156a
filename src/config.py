"""
Configuration loader for the AWS Reconciler.

Two layers of configuration exist:

- Engine configuration (`Config`), read from environment variables.
- Connector configuration (`AwsConnectorConfig`), read from JSON files kept in
  the repository next to the resource documents:
  `<prefix>/aws/<service>.json`, falling back to `<prefix>/aws/config.json`.
"""

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from botocore.config import Config as BotoConfig

from .reconciler.errors import ConfigError

DEFAULT_ENABLED_REGIONS = [
    "eu-west-1",
    "eu-west-2",
    "us-east-1",
    "us-east-2",
    "us-west-1",
    "us-west-2",
]


@dataclass
class Config:
    """Configuration class for the reconciler."""

    prefix: str
    log_level: str = "INFO"
    max_concurrency: int = 8
    prune: bool = False


def _int_from_env(name: str, default: int, minimum: int = 0) -> int:
    raw = os.environ.get(name, str(default))
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")
    if value < minimum:
        raise ConfigError(f"{name} must be at least {minimum}, got {value}")
    return value


def _bool_from_env(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    if raw.lower() in ("1", "true", "yes", "on"):
        return True
    if raw.lower() in ("0", "false", "no", "off", ""):
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


def load_config(prefix: Optional[str] = None) -> Config:
    """
    Loads and validates configuration for the reconciler.

    Args:
        prefix: Repository root; overrides RECONCILE_PREFIX when given

    Returns:
        Config object with validated settings

    Raises:
        ConfigError: If required configuration is missing or invalid
    """
    # Required configuration
    prefix = prefix or os.environ.get("RECONCILE_PREFIX")
    if not prefix:
        raise ConfigError("RECONCILE_PREFIX environment variable is required")

    if not Path(prefix).is_dir():
        raise ConfigError(f"RECONCILE_PREFIX must be an existing directory, got {prefix}")

    # Optional configuration with defaults
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    if log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ConfigError(f"LOG_LEVEL must be a valid logging level, got {log_level}")

    return Config(
        prefix=prefix,
        log_level=log_level,
        max_concurrency=_int_from_env("MAX_CONCURRENCY", 8, minimum=1),
        prune=_bool_from_env("RECONCILE_PRUNE", False),
    )


@dataclass
class AwsConnectorConfig:
    """Per-connector configuration shared by every AWS service connector."""

    enabled_regions: List[str] = field(default_factory=lambda: list(DEFAULT_ENABLED_REGIONS))
    account_id: Optional[str] = None
    endpoint_url: Optional[str] = None
    sts_region: str = "us-east-1"
    timeout_seconds: float = 30
    max_retries: int = 3

    def boto_config(self) -> BotoConfig:
        """botocore client configuration carrying the connect/read timeouts and retries."""
        return BotoConfig(
            connect_timeout=self.timeout_seconds,
            read_timeout=self.timeout_seconds,
            retries={"max_attempts": self.max_retries, "mode": "standard"},
        )

    def operation_timeout(self) -> float:
        """Time allowed for one operation: every retry attempt may use the full timeout."""
        return self.timeout_seconds * (self.max_retries + 1)


def connector_config_paths(prefix: Union[str, Path], service: str) -> List[Path]:
    root = Path(prefix) / "aws"
    return [root / f"{service}.json", root / "config.json"]


def _validate_connector_config(data: Any, source: Path) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ConfigError(f"{source} must contain a JSON object", {"path": str(source)})

    known = {f.name for f in fields(AwsConnectorConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys in {source}: {', '.join(unknown)}", {"path": str(source)})

    regions = data.get("enabled_regions")
    if regions is not None and (
        not isinstance(regions, list) or not all(isinstance(r, str) and r for r in regions)
    ):
        raise ConfigError(f"enabled_regions in {source} must be a list of region names", {"path": str(source)})

    for name in ("account_id", "endpoint_url", "sts_region"):
        if data.get(name) is not None and not isinstance(data[name], str):
            raise ConfigError(f"{name} in {source} must be a string", {"path": str(source)})

    timeout = data.get("timeout_seconds")
    if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0):
        raise ConfigError(f"timeout_seconds in {source} must be a positive number", {"path": str(source)})

    retries = data.get("max_retries")
    if retries is not None and (isinstance(retries, bool) or not isinstance(retries, int) or retries < 0):
        raise ConfigError(f"max_retries in {source} must be a non-negative integer", {"path": str(source)})

    return data


def load_connector_config(prefix: Union[str, Path], service: str) -> AwsConnectorConfig:
    """
    Loads the configuration for one AWS connector.

    The first file that exists wins; if neither exists the defaults apply.

    Args:
        prefix: Repository root
        service: Connector name, e.g. "vpc"

    Returns:
        AwsConnectorConfig with validated settings

    Raises:
        ConfigError: If a configuration file is unreadable, not JSON, or has unknown keys
    """
    for path in connector_config_paths(prefix, service):
        if not path.is_file():
            continue
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigError(f"Could not read {path}: {e}", {"path": str(path)})
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}", {"path": str(path)})
        return AwsConnectorConfig(**_validate_connector_config(data, path))
    return AwsConnectorConfig()
