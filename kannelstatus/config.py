"""Configuration loader with type-safe dataclasses."""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from . import __version__


class ConfigError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""

    pass


# Queued message sum above which the overall traffic table flags an error.
DEFAULT_QUEUE_ERROR_THRESHOLD = 100

# Page refresh interval used when the request does not carry ?refresh=N.
DEFAULT_REFRESH_SECONDS = 60

DEFAULT_USER_AGENT = f"kannelstatus/{__version__}"


@dataclass(frozen=True)
class InstanceConfig:
    """Configuration for a single bearerbox instance to monitor.

    - base_url: Admin HTTP interface of the bearerbox (e.g. http://host:13000)
    - status_password: Sent as ?password= when fetching /status.xml
    - admin_password: Sent as ?password= on admin commands (suspend, restart, ...)
    - name: Display name shown on the dashboard
    - timeout: Seconds to wait for the status document
    """

    name: str
    base_url: str
    status_password: str = ""
    admin_password: str = ""
    timeout: int = 10

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigError("Instance name cannot be empty")
        if not self.base_url:
            raise ConfigError(f"Base URL cannot be empty for '{self.name}'")
        if not self.base_url.startswith(("http://", "https://")):
            raise ConfigError(f"Base URL must start with http:// or https:// for '{self.name}'")
        if self.timeout < 1:
            raise ConfigError(f"Timeout must be at least 1 second for '{self.name}'")


@dataclass(frozen=True)
class MonitorConfig:
    """Configuration for the fetch-and-render pass."""

    refresh: int = DEFAULT_REFRESH_SECONDS  # default meta-refresh interval
    queue_error_threshold: int = DEFAULT_QUEUE_ERROR_THRESHOLD
    render_timeout: int = 30  # seconds to wait for all instances before giving up
    max_workers: int = 4  # concurrent status fetches
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        if self.refresh < 1:
            raise ConfigError(f"Monitor refresh must be at least 1 second (got {self.refresh})")
        if self.queue_error_threshold < 0:
            raise ConfigError(
                f"Queue error threshold must be non-negative (got {self.queue_error_threshold})"
            )
        if self.render_timeout < 1:
            raise ConfigError(f"Render timeout must be at least 1 second (got {self.render_timeout})")
        if self.max_workers < 1:
            raise ConfigError(f"Max workers must be at least 1 (got {self.max_workers})")
        if not self.user_agent:
            raise ConfigError("User-Agent cannot be empty")


@dataclass(frozen=True)
class ServerConfig:
    """Configuration for the dashboard HTTP server."""

    host: str = ""
    port: int = 8080

    def __post_init__(self) -> None:
        if self.port < 1 or self.port > 65535:
            raise ConfigError(f"Server port must be between 1 and 65535, got {self.port}")


@dataclass(frozen=True)
class Config:
    """Main configuration container."""

    instances: list[InstanceConfig]
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    def __post_init__(self) -> None:
        if not self.instances:
            raise ConfigError("At least one instance must be configured")
        names = [instance.name for instance in self.instances]
        duplicates = [name for name in names if names.count(name) > 1]
        if duplicates:
            raise ConfigError(f"Duplicate instance names found: {set(duplicates)}")


def _parse_instance_config(data: dict, index: int) -> InstanceConfig:
    """Parse a single instance configuration entry."""
    if not isinstance(data, dict):
        raise ConfigError(f"Instance entry {index} must be a dictionary")

    name = data.get("name")
    base_url = data.get("base_url")

    if name is None:
        raise ConfigError(f"Instance entry {index} is missing 'name' field")
    if base_url is None:
        raise ConfigError(f"Instance entry {index} is missing 'base_url' field")

    status_password = data.get("status_password")
    admin_password = data.get("admin_password")

    return InstanceConfig(
        name=str(name),
        base_url=str(base_url).rstrip("/"),
        status_password=str(status_password) if status_password is not None else "",
        admin_password=str(admin_password) if admin_password is not None else "",
        timeout=int(data.get("timeout", 10)),
    )


def _parse_monitor_config(data: dict | None) -> MonitorConfig:
    """Parse monitor configuration section."""
    if data is None:
        return MonitorConfig()
    if not isinstance(data, dict):
        raise ConfigError("'monitor' section must be a dictionary")

    return MonitorConfig(
        refresh=int(data.get("refresh", DEFAULT_REFRESH_SECONDS)),
        queue_error_threshold=int(data.get("queue_error_threshold", DEFAULT_QUEUE_ERROR_THRESHOLD)),
        render_timeout=int(data.get("render_timeout", 30)),
        max_workers=int(data.get("max_workers", 4)),
        user_agent=str(data.get("user_agent", DEFAULT_USER_AGENT)),
    )


def _parse_server_config(data: dict | None) -> ServerConfig:
    """Parse server configuration section."""
    if data is None:
        return ServerConfig()
    if not isinstance(data, dict):
        raise ConfigError("'server' section must be a dictionary")

    return ServerConfig(
        host=str(data.get("host", "")),
        port=int(data.get("port", 8080)),
    )


def _apply_env_overrides(config_data: dict) -> dict:
    """Apply environment variable overrides to configuration.

    Supported overrides:
    - KANNELSTATUS_SERVER_HOST: Override server.host
    - KANNELSTATUS_SERVER_PORT: Override server.port
    - KANNELSTATUS_MONITOR_REFRESH: Override monitor.refresh
    - KANNELSTATUS_MONITOR_RENDER_TIMEOUT: Override monitor.render_timeout
    - KANNELSTATUS_MONITOR_MAX_WORKERS: Override monitor.max_workers
    """
    for section in ("monitor", "server"):
        if config_data.get(section) is None:
            config_data[section] = {}
        elif not isinstance(config_data[section], dict):
            raise ConfigError(f"'{section}' section must be a dictionary")

    try:
        server_host = os.environ.get("KANNELSTATUS_SERVER_HOST")
        if server_host is not None:
            config_data["server"]["host"] = server_host

        server_port = os.environ.get("KANNELSTATUS_SERVER_PORT")
        if server_port is not None:
            config_data["server"]["port"] = int(server_port)

        refresh = os.environ.get("KANNELSTATUS_MONITOR_REFRESH")
        if refresh is not None:
            config_data["monitor"]["refresh"] = int(refresh)

        render_timeout = os.environ.get("KANNELSTATUS_MONITOR_RENDER_TIMEOUT")
        if render_timeout is not None:
            config_data["monitor"]["render_timeout"] = int(render_timeout)

        max_workers = os.environ.get("KANNELSTATUS_MONITOR_MAX_WORKERS")
        if max_workers is not None:
            config_data["monitor"]["max_workers"] = int(max_workers)
    except ValueError as e:
        raise ConfigError(f"Invalid environment override: {e}")

    return config_data


def load_config(config_path: str) -> Config:
    """Load and validate configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Validated Config object.

    Raises:
        ConfigError: If the file cannot be read or configuration is invalid.
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML configuration: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read configuration file: {e}")

    if data is None:
        raise ConfigError("Configuration file is empty")

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a YAML dictionary")

    data = _apply_env_overrides(data)

    instances_data = data.get("instances")
    if instances_data is None:
        raise ConfigError("Configuration must contain an 'instances' section")
    if not isinstance(instances_data, list):
        raise ConfigError("'instances' must be a list")

    try:
        instances = [_parse_instance_config(entry, i) for i, entry in enumerate(instances_data)]
        monitor = _parse_monitor_config(data.get("monitor"))
        server = _parse_server_config(data.get("server"))
    except ValueError as e:
        raise ConfigError(f"Invalid numeric value in configuration: {e}")

    return Config(
        instances=instances,
        monitor=monitor,
        server=server,
    )
