"""Range configuration files kept in the server's working directory.

Files live under ``<base_dir>/range-config-templates``. Paths from callers are
always relative to that root; filenames without a directory can be filed
under a per-user subdirectory.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final

import yaml

from ludus_mcp.models import ErrorKind, Result
from ludus_mcp.services.errors import InvalidArgumentError, LudusError

logger = logging.getLogger(__name__)

CONFIG_EXTENSIONS: Final = (".yml", ".yaml", ".json")

SAFE_PATH: Final = re.compile(r"^[A-Za-z0-9._/-]+$")

# Keys every VM entry under ``ludus:`` must define
REQUIRED_VM_KEYS: Final[tuple[str, ...]] = (
    "vm_name",
    "hostname",
    "template",
    "vlan",
    "ip_last_octet",
    "ram_gb",
    "cpus",
)
INTEGER_VM_KEYS: Final[dict[str, tuple[int, int]]] = {
    "vlan": (2, 255),
    "ip_last_octet": (1, 255),
    "ram_gb": (1, 1024),
    "cpus": (1, 256),
}
TOP_LEVEL_KEYS: Final = frozenset(
    {"ludus", "network", "router", "defaults", "notify", "global_role_vars"}
)

# Literal secrets in config text; placeholders ({{LudusCredName-...}}) never match
CREDENTIAL_PATTERNS: Final[list[str]] = [
    r"api[_-]?key\s*[:=]\s*['\"]\s*[A-Za-z0-9+/]{20,}['\"]",
    r"token\s*[:=]\s*['\"]\s*[A-Za-z0-9+/]{20,}['\"]",
    r"secret\s*[:=]\s*['\"]\s*[A-Za-z0-9+/]{20,}['\"]",
    r"key\s*[:=]\s*['\"]\s*[A-Za-z0-9+/]{20,}['\"]",
]
_CREDENTIAL_RE = re.compile("|".join(CREDENTIAL_PATTERNS), re.IGNORECASE)


class PathTraversalError(InvalidArgumentError):
    """Path points outside the range config directory."""


@dataclass
class ValidationReport:
    valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def error(self, message: str) -> None:
        self.valid = False
        self.errors.append(message)

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "errors": self.errors, "warnings": self.warnings}


def validate_relative_path(path: str) -> str:
    """Check a caller-supplied config path.

    Raises:
        PathTraversalError: Absolute paths, ``..`` or ``~`` components.
        InvalidArgumentError: Empty paths, unsafe characters or a
            non-config file extension.
    """
    if not isinstance(path, str) or not path.strip():
        raise InvalidArgumentError("Path cannot be empty")
    if os.path.isabs(path) or path.startswith(("/", "\\")):
        raise PathTraversalError(f"Absolute paths are not allowed: {path}")
    if ".." in path or "~" in path:
        raise PathTraversalError(f"Path traversal not allowed: {path}")
    if not SAFE_PATH.match(path):
        raise InvalidArgumentError(
            f"Path contains invalid characters: {path!r}. "
            "Only letters, digits, '.', '_', '-' and '/' are allowed."
        )
    extension = os.path.splitext(path)[1].lower()
    if extension and extension not in CONFIG_EXTENSIONS:
        raise InvalidArgumentError(
            f"File extension '{extension}' is not allowed. "
            f"Use one of: {', '.join(CONFIG_EXTENSIONS)}"
        )
    return path


def validate_range_config(config: Any) -> ValidationReport:
    """Structural checks of a parsed range configuration."""
    report = ValidationReport()

    if not isinstance(config, dict):
        report.error("Configuration must be a mapping at the top level")
        return report

    for key in sorted(set(config) - TOP_LEVEL_KEYS):
        report.warnings.append(f"Unknown top-level key: {key}")

    vms = config.get("ludus")
    if vms is None:
        report.error("Missing required key: ludus")
        return report
    if not isinstance(vms, list) or not vms:
        report.error("'ludus' must be a non-empty list of VMs")
        return report

    seen: set[str] = set()
    for index, vm in enumerate(vms):
        where = f"ludus[{index}]"
        if not isinstance(vm, dict):
            report.error(f"{where} must be a mapping")
            continue

        for key in REQUIRED_VM_KEYS:
            if key not in vm:
                report.error(f"{where}: missing required key '{key}'")

        for key, (low, high) in INTEGER_VM_KEYS.items():
            value = vm.get(key)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                report.error(f"{where}.{key}: expected an integer, got {value!r}")
            elif not low <= value <= high:
                report.error(f"{where}.{key}: {value} is outside {low}-{high}")

        roles = vm.get("roles")
        if roles is not None and not isinstance(roles, list):
            report.error(f"{where}.roles: expected a list")

        name = vm.get("vm_name")
        if isinstance(name, str):
            if name in seen:
                report.error(f"{where}.vm_name: duplicate name '{name}'")
            seen.add(name)

    return report


def find_credentials(content: str) -> bool:
    """Whether config text appears to contain a literal external secret."""
    return bool(_CREDENTIAL_RE.search(content))


class RangeConfigStore:
    """Reads, validates, writes and lists range config files.

    Like ``LudusCliWrapper``, every public method returns a ``Result`` and
    never raises.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def _resolve(self, path: str, user: str | None = None) -> Path:
        validate_relative_path(path)
        if user is not None:
            validate_relative_path(user)
            if "/" in user:
                raise InvalidArgumentError(f"'user' cannot contain '/': {user!r}")

        # Bare filenames can be filed under the user's directory
        if user and os.path.dirname(path) == "":
            candidate = self.root / user / path
        else:
            candidate = self.root / path

        root = self.root.resolve()
        resolved = candidate.resolve()
        if resolved != root and root not in resolved.parents:
            raise PathTraversalError(f"Path escapes the config directory: {path}")
        return resolved

    def read(self, source: str) -> Result:
        """Return the text of a config file without validating it."""
        try:
            path = self._resolve(source)
        except LudusError as e:
            return Result.failure(e.kind, e.message)

        if not path.is_file():
            return Result.failure(ErrorKind.NOT_FOUND, f"File does not exist: {source}")
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error("Cannot read %s: %s", path, e)
            return Result.failure(
                ErrorKind.EXECUTION_FAILURE, f"Failed to read file: {e}"
            )

        logger.info("Read range config %s (%d chars)", path, len(content))
        return Result(
            success=True,
            message=f"Read configuration from {source}",
            raw_output=content,
            data={"source": source, "path": str(path), "content": content},
        )

    def validate(self, content: str | None = None, source: str | None = None) -> Result:
        """Validate inline YAML, or the file at ``source``.

        A config that parses but fails validation is still a successful
        call; the report is in ``data["validation"]``.
        """
        origin = "inline content"
        if content is None:
            if not source:
                return Result.failure(
                    ErrorKind.INVALID_ARGUMENT,
                    "Either 'source' or 'content' is required",
                )
            read = self.read(source)
            if not read.success:
                return read
            content = read.data["content"]
            origin = source

        try:
            parsed = yaml.safe_load(content)
        except yaml.YAMLError as e:
            report = ValidationReport()
            report.error(f"Invalid YAML syntax: {e}")
        else:
            report = validate_range_config(parsed)

        logger.info(
            "Validated %s: %s (%d error(s), %d warning(s))",
            origin,
            "valid" if report.valid else "invalid",
            len(report.errors),
            len(report.warnings),
        )
        return Result(
            success=True,
            message=(
                "Configuration is valid"
                if report.valid
                else "Configuration has validation errors"
            ),
            raw_output=content,
            data={"source": origin, "validation": report.to_dict()},
        )

    def write(self, content: str, file_path: str, user: str | None = None) -> Result:
        """Validate and save a config. Invalid configs are not written."""
        try:
            path = self._resolve(file_path, user)
        except LudusError as e:
            return Result.failure(e.kind, e.message)

        validated = self.validate(content=content)
        report = validated.data["validation"]
        if not report["valid"]:
            return Result.failure(
                ErrorKind.INVALID_ARGUMENT,
                "Configuration not saved: " + "; ".join(report["errors"]),
            )

        credentials = find_credentials(content)
        if credentials:
            logger.warning("Possible credential in range config %s", file_path)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            logger.error("Cannot write %s: %s", path, e)
            return Result.failure(
                ErrorKind.EXECUTION_FAILURE, f"Failed to write file: {e}"
            )

        logger.info("Wrote range config %s", path)
        return Result(
            success=True,
            message=f"Saved configuration to {path}",
            data={
                "path": str(path),
                "relativePath": str(path.relative_to(self.root.resolve())),
                "validation": report,
                "credentialWarning": credentials,
            },
        )

    def list_configs(
        self, directory: str | None = None, recursive: bool | None = None
    ) -> Result:
        """List config files, with their size and validity.

        Without ``directory`` the whole tree is searched; with one, only that
        directory unless ``recursive`` is set.
        """
        if recursive is None:
            recursive = directory is None
        try:
            target = self._resolve(directory) if directory else self.root.resolve()
        except LudusError as e:
            return Result.failure(e.kind, e.message)

        if not target.exists():
            if directory:
                return Result.failure(
                    ErrorKind.NOT_FOUND, f"Directory does not exist: {directory}"
                )
            return Result(success=True, message="No range configs found", data=[])
        if not target.is_dir():
            return Result.failure(
                ErrorKind.INVALID_ARGUMENT, f"Not a directory: {directory}"
            )

        pattern = "**/*" if recursive else "*"
        root = self.root.resolve()
        configs = []
        for path in sorted(target.glob(pattern)):
            if not path.is_file() or path.suffix.lower() not in CONFIG_EXTENSIONS:
                continue
            try:
                parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
                valid = validate_range_config(parsed).valid
            except (OSError, yaml.YAMLError):
                valid = False
            configs.append(
                {
                    "path": str(path.relative_to(root)),
                    "size": path.stat().st_size,
                    "valid": valid,
                }
            )

        return Result(
            success=True,
            message=f"Found {len(configs)} range config(s)",
            data=configs,
        )
