"""Configuration management for Ludus MCP."""

import logging
import os
from contextlib import suppress
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

TRUE_VALUES = ("1", "true", "yes", "on")

# Range config files live here, relative to base_dir
RANGE_CONFIG_DIRNAME = "range-config-templates"


def _default_client_config() -> Path:
    return Path.home() / ".config" / "ludus" / "config.yml"


@dataclass
class Config:
    """Ludus MCP configuration.

    Values come from the dataclass defaults, then the Ludus client config file
    (``url`` and ``verify`` only), then environment variables. The instance is
    treated as read-only once the server has started.
    """

    binary: str = "ludus"
    ludus_url: str | None = None
    admin_url: str | None = None
    api_key: str | None = field(default=None, repr=False)
    verify_ssl: bool = True
    command_timeout: int = 30
    deploy_timeout: int = 120
    help_timeout: int = 10
    base_dir: Path = field(default_factory=lambda: Path.home() / ".ludus-mcp")
    client_config_path: Path = field(default_factory=_default_client_config)
    # Transport configuration
    transport: str = "stdio"  # "stdio" or "http"
    http_host: str = "0.0.0.0"
    http_port: int = 8000

    def __post_init__(self) -> None:
        """Apply config file and environment variable overrides."""
        self._load_client_config()

        def get_env_int(key: str) -> int | None:
            if val := os.getenv(key):
                with suppress(ValueError):
                    return int(val)
                logger.warning("Ignoring invalid integer for %s: %r", key, val)
            return None

        if binary := os.getenv("LUDUS_MCP_BINARY"):
            self.binary = binary

        if url := os.getenv("LUDUS_URL"):
            self.ludus_url = url

        if admin_url := os.getenv("LUDUS_ADMIN_URL"):
            self.admin_url = admin_url

        if api_key := os.getenv("LUDUS_API_KEY"):
            self.api_key = api_key

        if verify := os.getenv("LUDUS_VERIFY", "").lower():
            self.verify_ssl = verify in TRUE_VALUES

        for key, attr in (
            ("LUDUS_MCP_COMMAND_TIMEOUT", "command_timeout"),
            ("LUDUS_MCP_DEPLOY_TIMEOUT", "deploy_timeout"),
            ("LUDUS_MCP_HELP_TIMEOUT", "help_timeout"),
        ):
            val = get_env_int(key)
            if val is None:
                continue
            if val <= 0:
                logger.warning(
                    "%s must be > 0, got %d. Using default: %d",
                    key,
                    val,
                    getattr(self, attr),
                )
            else:
                setattr(self, attr, val)

        if workdir := os.getenv("LUDUS_MCP_WORKDIR"):
            self.base_dir = Path(os.path.expanduser(workdir))

        transport = os.getenv("LUDUS_MCP_TRANSPORT", "").lower()
        if transport in ("http", "stdio"):
            self.transport = transport

        if http_host := os.getenv("LUDUS_MCP_HTTP_HOST"):
            self.http_host = http_host

        http_port = get_env_int("LUDUS_MCP_HTTP_PORT")
        if http_port is not None:
            self.http_port = http_port

        logger.debug(
            "Config initialized: binary=%s, url=%s, api_key=%s, transport=%s, "
            "timeouts=%d/%d/%d",
            self.binary,
            self.ludus_url or "(unset)",
            "set" if self.api_key else "unset",
            self.transport,
            self.command_timeout,
            self.deploy_timeout,
            self.help_timeout,
        )

    def _load_client_config(self) -> None:
        """Read defaults from the Ludus client's own config.yml."""
        path = self.client_config_path
        if not path.exists():
            return

        try:
            content = yaml.safe_load(path.read_text()) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Cannot read Ludus config %s: %s", path, e)
            return

        if not isinstance(content, dict):
            logger.warning("Ignoring Ludus config %s: not a mapping", path)
            return

        if isinstance(url := content.get("url"), str) and url:
            self.ludus_url = url
        if isinstance(verify := content.get("verify"), bool):
            self.verify_ssl = verify
        logger.debug("Loaded Ludus client config from %s", path)

    def cli_environment(self) -> dict[str, str]:
        """Variables passed to every ``ludus`` process."""
        env = {
            "LUDUS_VERIFY": "true" if self.verify_ssl else "false",
            "LUDUS_JSON": "true",
        }
        if self.ludus_url:
            env["LUDUS_URL"] = self.ludus_url
        if self.api_key:
            env["LUDUS_API_KEY"] = self.api_key
        return env

    @property
    def range_config_dir(self) -> Path:
        """Directory holding range config files written by the tools."""
        return self.base_dir / RANGE_CONFIG_DIRNAME

    def ensure_base_dir(self) -> Path | None:
        """Create the working directory for CLI processes.

        Returns:
            The directory, or None if it cannot be created (processes then
            inherit the server's working directory).
        """
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Cannot create working directory %s: %s", self.base_dir, e)
            return None
        return self.base_dir
