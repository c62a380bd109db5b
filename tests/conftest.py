"""Shared fixtures for Ludus MCP tests."""

import sys
from pathlib import Path

import pytest

from ludus_mcp.config import Config

LUDUS_ENV_VARS = [
    "LUDUS_MCP_BINARY",
    "LUDUS_URL",
    "LUDUS_ADMIN_URL",
    "LUDUS_API_KEY",
    "LUDUS_VERIFY",
    "LUDUS_MCP_COMMAND_TIMEOUT",
    "LUDUS_MCP_DEPLOY_TIMEOUT",
    "LUDUS_MCP_HELP_TIMEOUT",
    "LUDUS_MCP_WORKDIR",
    "LUDUS_MCP_TRANSPORT",
    "LUDUS_MCP_HTTP_HOST",
    "LUDUS_MCP_HTTP_PORT",
]

# Stand-in for the ludus binary. Behaviour is chosen by the first argument
# so the real subprocess path can be exercised end to end.
FAKE_LUDUS = '''#!{python}
import json
import os
import sys
import time

args = sys.argv[1:]
first = args[0] if args else ""

if "--help" in args:
    print("Ludus client help\\n\\nUsage:\\n  ludus [command]\\n\\n"
          "Available Commands:\\n  range  Manage ranges\\n\\n"
          "Flags:\\n  -h, --help   help for ludus")
elif first == "sleep":
    if len(args) > 1:
        with open(args[1], "w") as f:
            f.write(str(os.getpid()))
    time.sleep(60)
elif first == "fail":
    sys.stderr.write(args[1] if len(args) > 1 else "boom")
    sys.exit(int(args[2]) if len(args) > 2 else 1)
elif first == "text":
    sys.stderr.write("[INFO]  Range deploy started\\n")
else:
    print(json.dumps({{
        "argv": args,
        "cwd": os.getcwd(),
        "env": {{k: os.environ.get(k) for k in (
            "LUDUS_URL", "LUDUS_API_KEY", "LUDUS_JSON", "LUDUS_VERIFY"
        )}},
    }}))
'''

@pytest.fixture(autouse=True)
def clean_ludus_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's Ludus environment out of tests."""
    for var in LUDUS_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def fake_ludus(tmp_path: Path) -> Path:
    """Write an executable fake ludus CLI and return its path."""
    script = tmp_path / "ludus"
    script.write_text(FAKE_LUDUS.format(python=sys.executable))
    script.chmod(0o755)
    return script


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Config isolated from the user's home directory."""
    return Config(
        client_config_path=tmp_path / "missing-config.yml",
        base_dir=tmp_path / "work",
    )


@pytest.fixture
def fake_config(tmp_path: Path, fake_ludus: Path) -> Config:
    """Config pointing at the fake ludus CLI."""
    return Config(
        binary=str(fake_ludus),
        ludus_url="https://198.51.100.1:8080",
        api_key="alice.0123456789abcdef0123456789abcdef01234567",
        client_config_path=tmp_path / "missing-config.yml",
        base_dir=tmp_path / "work",
        help_timeout=10,
    )
