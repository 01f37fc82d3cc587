"""Configuration management for the printer bridge.

Handles configuration loading with the following precedence (highest to lowest):
1. Environment variables
2. CLI arguments
3. Config file
4. Default values

Connect and open timeouts are fixed constants of the transports and are not
part of the configuration.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from printer_bridge.core.logging import get_logger
from printer_bridge.transport.serial_transport import DEFAULT_CHUNK_DELAY, DEFAULT_CHUNK_SIZE

logger = get_logger()

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "printer-bridge" / "config.yaml"

# Environment variable names
ENV_SERVER_PORT = "SERVER_PORT"
ENV_SERVER_ADDRESS = "SERVER_ADDRESS"
ENV_SERIAL_CHUNK_SIZE = "SERIAL_CHUNK_SIZE"
ENV_SERIAL_CHUNK_DELAY = "SERIAL_CHUNK_DELAY"
ENV_SERIAL_BAUD_RATE = "SERIAL_BAUD_RATE"
ENV_TCP_PRINTER_PORT = "TCP_PRINTER_PORT"
ENV_PAYLOAD_LOG_FILE = "PAYLOAD_LOG_FILE"
ENV_CONFIG_FILE = "PRINTER_BRIDGE_CONFIG"


@dataclass
class ServerConfig:
    """Local command server settings."""

    address: str = "127.0.0.1"
    port: int = 8765


@dataclass
class SerialConfig:
    """Serial printer settings."""

    chunk_size: int = DEFAULT_CHUNK_SIZE
    chunk_delay: float = DEFAULT_CHUNK_DELAY * 1000  # ms
    baud_rate: int = 9600


@dataclass
class TcpConfig:
    """Network printer settings."""

    port: int = 9100


def _get(data: dict[str, Any], key: str) -> Any:
    """Look up a hyphenated key, falling back to its underscore spelling."""
    if key in data:
        return data[key]
    return data.get(key.replace("-", "_"))


@dataclass
class Config:
    """Main configuration container."""

    server: ServerConfig = field(default_factory=ServerConfig)
    serial: SerialConfig = field(default_factory=SerialConfig)
    tcp: TcpConfig = field(default_factory=TcpConfig)
    payload_log_file: str | None = None

    @property
    def chunk_delay_seconds(self) -> float:
        return self.serial.chunk_delay / 1000.0

    @classmethod
    def load(
        cls,
        config_file: Path | str | None = None,
        cli_args: dict[str, Any] | None = None,
    ) -> "Config":
        """Load configuration from all sources with proper precedence.

        Args:
            config_file: Path to configuration file. If None, uses default or env var.
            cli_args: Dictionary of CLI arguments.

        Returns:
            Loaded and merged configuration.

        Raises:
            ValueError: If a value is out of range after merging all sources.
        """
        config = cls()

        if config_file is None:
            config_file = os.environ.get(ENV_CONFIG_FILE, str(DEFAULT_CONFIG_PATH))

        config_path = Path(config_file).expanduser()

        if config_path.exists():
            config = cls._load_from_file(config_path)

        if cli_args:
            config = cls._apply_cli_args(config, cli_args)

        config = cls._apply_env_vars(config)

        config._validate()

        return config

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        """Load configuration from YAML file.

        Args:
            path: Path to the YAML config file.

        Returns:
            Configuration loaded from file, or defaults if it cannot be read.
        """
        config = cls()

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (yaml.YAMLError, OSError) as e:
            logger.warning(f"Failed to load config file {path}: {e}")
            return config

        server_data = data.get("server") or {}
        if _get(server_data, "address") is not None:
            config.server.address = str(_get(server_data, "address"))
        if _get(server_data, "port") is not None:
            config.server.port = int(_get(server_data, "port"))

        serial_data = data.get("serial") or {}
        if _get(serial_data, "chunk-size") is not None:
            config.serial.chunk_size = int(_get(serial_data, "chunk-size"))
        if _get(serial_data, "chunk-delay") is not None:
            config.serial.chunk_delay = float(_get(serial_data, "chunk-delay"))
        if _get(serial_data, "baud-rate") is not None:
            config.serial.baud_rate = int(_get(serial_data, "baud-rate"))

        tcp_data = data.get("tcp") or {}
        if _get(tcp_data, "port") is not None:
            config.tcp.port = int(_get(tcp_data, "port"))

        if _get(data, "payload-log-file") is not None:
            config.payload_log_file = str(_get(data, "payload-log-file"))

        return config

    @classmethod
    def _apply_cli_args(cls, config: "Config", cli_args: dict[str, Any]) -> "Config":
        """Apply CLI arguments to configuration."""
        if cli_args.get("address") is not None:
            config.server.address = str(cli_args["address"])

        if cli_args.get("port") is not None:
            config.server.port = int(cli_args["port"])

        if cli_args.get("chunk_size") is not None:
            config.serial.chunk_size = int(cli_args["chunk_size"])

        if cli_args.get("chunk_delay") is not None:
            config.serial.chunk_delay = float(cli_args["chunk_delay"])

        if cli_args.get("baud_rate") is not None:
            config.serial.baud_rate = int(cli_args["baud_rate"])

        if cli_args.get("printer_port") is not None:
            config.tcp.port = int(cli_args["printer_port"])

        if cli_args.get("payload_log_file") is not None:
            config.payload_log_file = str(cli_args["payload_log_file"])

        return config

    @classmethod
    def _apply_env_vars(cls, config: "Config") -> "Config":
        """Apply environment variables to configuration."""
        if ENV_SERVER_ADDRESS in os.environ:
            config.server.address = os.environ[ENV_SERVER_ADDRESS]

        if ENV_SERVER_PORT in os.environ:
            config.server.port = int(os.environ[ENV_SERVER_PORT])

        if ENV_SERIAL_CHUNK_SIZE in os.environ:
            config.serial.chunk_size = int(os.environ[ENV_SERIAL_CHUNK_SIZE])

        if ENV_SERIAL_CHUNK_DELAY in os.environ:
            config.serial.chunk_delay = float(os.environ[ENV_SERIAL_CHUNK_DELAY])

        if ENV_SERIAL_BAUD_RATE in os.environ:
            config.serial.baud_rate = int(os.environ[ENV_SERIAL_BAUD_RATE])

        if ENV_TCP_PRINTER_PORT in os.environ:
            config.tcp.port = int(os.environ[ENV_TCP_PRINTER_PORT])

        if ENV_PAYLOAD_LOG_FILE in os.environ:
            config.payload_log_file = os.environ[ENV_PAYLOAD_LOG_FILE]

        return config

    def _validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If a value is out of range.
        """
        if not 0 <= self.server.port <= 65535:
            raise ValueError(f"server.port must be between 0 and 65535, got {self.server.port}")
        if not 0 <= self.tcp.port <= 65535:
            raise ValueError(f"tcp.port must be between 0 and 65535, got {self.tcp.port}")
        if self.serial.chunk_size <= 0:
            raise ValueError(f"serial.chunk-size must be positive, got {self.serial.chunk_size}")
        if self.serial.chunk_delay < 0:
            raise ValueError(
                f"serial.chunk-delay must not be negative, got {self.serial.chunk_delay}"
            )
        if self.serial.baud_rate <= 0:
            raise ValueError(f"serial.baud-rate must be positive, got {self.serial.baud_rate}")

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a YAML-friendly dictionary with hyphenated keys."""
        data: dict[str, Any] = {
            "server": {
                "address": self.server.address,
                "port": self.server.port,
            },
            "serial": {
                "chunk-size": self.serial.chunk_size,
                "chunk-delay": self.serial.chunk_delay,
                "baud-rate": self.serial.baud_rate,
            },
            "tcp": {
                "port": self.tcp.port,
            },
        }
        if self.payload_log_file is not None:
            data["payload-log-file"] = self.payload_log_file
        return data

    def save(self, path: Path | str | None = None) -> None:
        """Save configuration to YAML file.

        Args:
            path: Path to save to. If None, uses default config path.
        """
        if path is None:
            path = DEFAULT_CONFIG_PATH

        save_path = Path(path).expanduser()
        save_path.parent.mkdir(parents=True, exist_ok=True)

        with open(save_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
