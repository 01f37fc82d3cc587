"""Tests for the configuration module."""

import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from printer_bridge.core.config import (
    Config,
    SerialConfig,
    ServerConfig,
    TcpConfig,
    DEFAULT_CONFIG_PATH,
    ENV_CONFIG_FILE,
    ENV_PAYLOAD_LOG_FILE,
    ENV_SERIAL_CHUNK_DELAY,
    ENV_SERIAL_CHUNK_SIZE,
    ENV_SERVER_ADDRESS,
    ENV_SERVER_PORT,
    ENV_TCP_PRINTER_PORT,
)

ALL_ENV_VARS = [
    "SERVER_PORT",
    "SERVER_ADDRESS",
    "SERIAL_CHUNK_SIZE",
    "SERIAL_CHUNK_DELAY",
    "SERIAL_BAUD_RATE",
    "TCP_PRINTER_PORT",
    "PAYLOAD_LOG_FILE",
    "PRINTER_BRIDGE_CONFIG",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of config tests."""
    for name in ALL_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def missing_config(tmp_path):
    return tmp_path / "does-not-exist.yaml"


def write_config(data) -> str:
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        yaml.safe_dump(data, f)
        return f.name


class TestDefaults:
    """Tests for the configuration dataclasses."""

    def test_server_defaults(self):
        config = ServerConfig()
        assert config.address == "127.0.0.1"
        assert config.port == 8765

    def test_serial_defaults(self):
        config = SerialConfig()
        assert config.chunk_size == 512
        assert config.chunk_delay == pytest.approx(20.0)
        assert config.baud_rate == 9600

    def test_tcp_defaults(self):
        assert TcpConfig().port == 9100

    def test_chunk_delay_seconds(self):
        assert Config().chunk_delay_seconds == pytest.approx(0.020)

    def test_default_path(self):
        assert DEFAULT_CONFIG_PATH.name == "config.yaml"
        assert DEFAULT_CONFIG_PATH.parent.name == "printer-bridge"

    def test_to_dict(self):
        assert Config().to_dict() == {
            "server": {"address": "127.0.0.1", "port": 8765},
            "serial": {"chunk-size": 512, "chunk-delay": 20.0, "baud-rate": 9600},
            "tcp": {"port": 9100},
        }


class TestConfigLoadFromFile:
    """Tests for loading configuration from files."""

    def test_load_from_yaml_file(self):
        config_path = write_config({
            "server": {"address": "0.0.0.0", "port": 9000},
            "serial": {"chunk-size": 256, "chunk-delay": 35, "baud-rate": 19200},
            "tcp": {"port": 9101},
            "payload-log-file": "/tmp/payloads.log",
        })
        try:
            config = Config.load(config_file=config_path)
        finally:
            os.unlink(config_path)

        assert config.server.address == "0.0.0.0"
        assert config.server.port == 9000
        assert config.serial.chunk_size == 256
        assert config.serial.chunk_delay == 35.0
        assert config.serial.baud_rate == 19200
        assert config.tcp.port == 9101
        assert config.payload_log_file == "/tmp/payloads.log"

    def test_load_with_underscore_keys(self):
        config_path = write_config({
            "serial": {"chunk_size": 128, "baud_rate": 38400},
            "payload_log_file": "/tmp/p.log",
        })
        try:
            config = Config.load(config_file=config_path)
        finally:
            os.unlink(config_path)

        assert config.serial.chunk_size == 128
        assert config.serial.baud_rate == 38400
        assert config.payload_log_file == "/tmp/p.log"

    def test_partial_file_keeps_defaults(self):
        config_path = write_config({"server": {"port": 9999}})
        try:
            config = Config.load(config_file=config_path)
        finally:
            os.unlink(config_path)

        assert config.server.port == 9999
        assert config.server.address == "127.0.0.1"
        assert config.serial.chunk_size == 512

    def test_missing_file_uses_defaults(self, missing_config):
        config = Config.load(config_file=missing_config)
        assert config == Config()

    def test_invalid_yaml_uses_defaults(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("server: [unclosed\n", encoding="utf-8")

        config = Config.load(config_file=path)

        assert config.server.port == 8765

    def test_config_file_from_env(self, monkeypatch):
        config_path = write_config({"server": {"port": 7000}})
        monkeypatch.setenv(ENV_CONFIG_FILE, config_path)
        try:
            config = Config.load()
        finally:
            os.unlink(config_path)

        assert config.server.port == 7000


class TestPrecedence:
    """Environment > CLI > file > defaults."""

    def test_cli_overrides_file(self):
        config_path = write_config({"server": {"port": 9000}, "serial": {"chunk-size": 256}})
        try:
            config = Config.load(
                config_file=config_path,
                cli_args={"port": 9500, "chunk_size": None},
            )
        finally:
            os.unlink(config_path)

        assert config.server.port == 9500
        assert config.serial.chunk_size == 256

    def test_env_overrides_cli(self, missing_config):
        env = {
            ENV_SERVER_PORT: "9700",
            ENV_SERVER_ADDRESS: "0.0.0.0",
            ENV_SERIAL_CHUNK_SIZE: "64",
            ENV_SERIAL_CHUNK_DELAY: "50",
            ENV_TCP_PRINTER_PORT: "9200",
            ENV_PAYLOAD_LOG_FILE: "/tmp/env.log",
        }
        with patch.dict(os.environ, env):
            config = Config.load(
                config_file=missing_config,
                cli_args={"port": 9500, "chunk_size": 1024, "printer_port": 9300},
            )

        assert config.server.port == 9700
        assert config.server.address == "0.0.0.0"
        assert config.serial.chunk_size == 64
        assert config.serial.chunk_delay == 50.0
        assert config.tcp.port == 9200
        assert config.payload_log_file == "/tmp/env.log"


class TestValidation:
    @pytest.mark.parametrize(
        "cli_args",
        [
            {"chunk_size": 0},
            {"chunk_delay": -1},
            {"port": 70000},
            {"printer_port": -1},
            {"baud_rate": 0},
        ],
    )
    def test_out_of_range_values_rejected(self, missing_config, cli_args):
        with pytest.raises(ValueError):
            Config.load(config_file=missing_config, cli_args=cli_args)


class TestSave:
    def test_save_round_trips(self, tmp_path):
        config = Config()
        config.server.port = 9001
        config.serial.chunk_size = 300
        config.payload_log_file = "/tmp/p.log"
        path = tmp_path / "nested" / "config.yaml"

        config.save(path)

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        assert data["server"]["port"] == 9001
        assert data["serial"]["chunk-size"] == 300
        assert data["payload-log-file"] == "/tmp/p.log"
        assert Config.load(config_file=path) == config

    def test_save_creates_parent_directories(self, tmp_path):
        path = tmp_path / "a" / "b" / "config.yaml"
        Config().save(Path(path))
        assert path.exists()
