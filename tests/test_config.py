"""Tests for configuration loading."""

from pathlib import Path

import pytest

from ludus_mcp.config import Config


@pytest.fixture
def isolated(tmp_path: Path) -> dict:
    return {
        "client_config_path": tmp_path / "missing.yml",
        "base_dir": tmp_path / "work",
    }


def test_defaults(isolated: dict) -> None:
    config = Config(**isolated)

    assert config.binary == "ludus"
    assert config.ludus_url is None
    assert config.api_key is None
    assert config.verify_ssl is True
    assert (config.command_timeout, config.deploy_timeout, config.help_timeout) == (
        30,
        120,
        10,
    )
    assert config.transport == "stdio"


def test_environment_overrides(
    isolated: dict, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("LUDUS_MCP_BINARY", "/opt/ludus/bin/ludus")
    monkeypatch.setenv("LUDUS_URL", "https://10.2.0.1:8080")
    monkeypatch.setenv("LUDUS_ADMIN_URL", "https://127.0.0.1:8081")
    monkeypatch.setenv("LUDUS_API_KEY", "alice.key")
    monkeypatch.setenv("LUDUS_VERIFY", "false")
    monkeypatch.setenv("LUDUS_MCP_DEPLOY_TIMEOUT", "300")
    monkeypatch.setenv("LUDUS_MCP_WORKDIR", str(tmp_path / "elsewhere"))
    monkeypatch.setenv("LUDUS_MCP_TRANSPORT", "HTTP")
    monkeypatch.setenv("LUDUS_MCP_HTTP_HOST", "127.0.0.1")
    monkeypatch.setenv("LUDUS_MCP_HTTP_PORT", "9000")

    config = Config(**isolated)

    assert config.binary == "/opt/ludus/bin/ludus"
    assert config.ludus_url == "https://10.2.0.1:8080"
    assert config.admin_url == "https://127.0.0.1:8081"
    assert config.api_key == "alice.key"
    assert config.verify_ssl is False
    assert config.deploy_timeout == 300
    assert config.base_dir == tmp_path / "elsewhere"
    assert config.transport == "http"
    assert (config.http_host, config.http_port) == ("127.0.0.1", 9000)


@pytest.mark.parametrize("value", ["0", "-5", "soon"])
def test_invalid_timeouts_keep_default(
    isolated: dict, monkeypatch: pytest.MonkeyPatch, value: str
) -> None:
    monkeypatch.setenv("LUDUS_MCP_COMMAND_TIMEOUT", value)

    assert Config(**isolated).command_timeout == 30


def test_unknown_transport_ignored(
    isolated: dict, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("LUDUS_MCP_TRANSPORT", "carrier-pigeon")

    assert Config(**isolated).transport == "stdio"


def test_api_key_not_in_repr(isolated: dict) -> None:
    config = Config(api_key="alice.supersecret", **isolated)

    assert "supersecret" not in repr(config)


def test_reads_client_config(tmp_path: Path) -> None:
    client_config = tmp_path / "config.yml"
    client_config.write_text("url: https://10.2.0.1:8080\nverify: false\nproxy: ''\n")

    config = Config(client_config_path=client_config, base_dir=tmp_path / "work")

    assert config.ludus_url == "https://10.2.0.1:8080"
    assert config.verify_ssl is False


def test_environment_beats_client_config(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    client_config = tmp_path / "config.yml"
    client_config.write_text("url: https://from-file:8080\n")
    monkeypatch.setenv("LUDUS_URL", "https://from-env:8080")

    config = Config(client_config_path=client_config, base_dir=tmp_path / "work")

    assert config.ludus_url == "https://from-env:8080"


@pytest.mark.parametrize("content", ["url: [unclosed\n", "- just\n- a list\n", ""])
def test_bad_client_config_ignored(tmp_path: Path, content: str) -> None:
    client_config = tmp_path / "config.yml"
    client_config.write_text(content)

    config = Config(client_config_path=client_config, base_dir=tmp_path / "work")

    assert config.ludus_url is None
    assert config.verify_ssl is True


def test_cli_environment(isolated: dict) -> None:
    config = Config(
        ludus_url="https://10.2.0.1:8080",
        api_key="alice.key",
        verify_ssl=False,
        **isolated,
    )

    assert config.cli_environment() == {
        "LUDUS_URL": "https://10.2.0.1:8080",
        "LUDUS_API_KEY": "alice.key",
        "LUDUS_VERIFY": "false",
        "LUDUS_JSON": "true",
    }


def test_cli_environment_without_credentials(isolated: dict) -> None:
    env = Config(**isolated).cli_environment()

    assert "LUDUS_URL" not in env
    assert "LUDUS_API_KEY" not in env


def test_ensure_base_dir(tmp_path: Path) -> None:
    config = Config(
        client_config_path=tmp_path / "missing.yml", base_dir=tmp_path / "a" / "b"
    )

    assert config.ensure_base_dir() == tmp_path / "a" / "b"
    assert (tmp_path / "a" / "b").is_dir()


def test_ensure_base_dir_failure(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")
    config = Config(client_config_path=tmp_path / "missing.yml", base_dir=blocker / "sub")

    assert config.ensure_base_dir() is None
