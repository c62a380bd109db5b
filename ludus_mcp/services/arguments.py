"""Argument vector construction for Ludus CLI operations.

Every operation the server exposes is declared here as an ``OperationSpec``.
``build`` validates caller parameters against that declaration and produces a
``Command`` whose tokens are handed to the process unchanged.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Final

from ludus_mcp.models import Command
from ludus_mcp.services.errors import InvalidArgumentError

logger = logging.getLogger(__name__)

HELP_FLAG: Final = "--help"
EXECUTE: Final = "execute"


class OptionKind(str, Enum):
    """How an option value turns into tokens."""

    VALUE = "value"  # --flag <value>
    SWITCH = "switch"  # --flag, only when True
    LIST = "list"  # --flag a,b,c


class TimeoutProfile(str, Enum):
    DEFAULT = "default"
    DEPLOY = "deploy"
    HELP = "help"


@dataclass(frozen=True)
class OptionSpec:
    flag: str
    kind: OptionKind = OptionKind.VALUE
    required: bool = False


@dataclass(frozen=True)
class OperationSpec:
    """Declaration of one Ludus CLI operation.

    ``options`` is ordered; tokens are emitted in declaration order regardless
    of the order of the caller's keys.
    """

    command: str
    subcommand: tuple[str, ...] = ()
    options: dict[str, OptionSpec] = field(default_factory=dict)
    timeout_profile: TimeoutProfile = TimeoutProfile.DEFAULT
    allows_user: bool = True


OPERATIONS: Final[dict[str, OperationSpec]] = {
    "deploy_range": OperationSpec(
        "range",
        ("deploy",),
        {
            "force": OptionSpec("--force", OptionKind.SWITCH),
            "tags": OptionSpec("--tags", OptionKind.LIST),
            "limit": OptionSpec("--limit"),
            "only_roles": OptionSpec("--only-roles", OptionKind.LIST),
            "verbose_ansible": OptionSpec("--verbose-ansible", OptionKind.SWITCH),
        },
        timeout_profile=TimeoutProfile.DEPLOY,
    ),
    # 'list' is the CLI alias for range status
    "range_status": OperationSpec("range", ("list",)),
    "list_user_ranges": OperationSpec("range", ("list",)),
    "get_tags": OperationSpec("range", ("gettags",)),
    "list_all_users": OperationSpec("users", ("list", "all"), allows_user=False),
    "abort_range": OperationSpec("range", ("abort",)),
    "destroy_range": OperationSpec(
        "range",
        ("rm",),
        {"no_prompt": OptionSpec("--no-prompt", OptionKind.SWITCH)},
    ),
    "power_on": OperationSpec(
        "power", ("on",), {"names": OptionSpec("--name", OptionKind.LIST)}
    ),
    "power_off": OperationSpec(
        "power", ("off",), {"names": OptionSpec("--name", OptionKind.LIST)}
    ),
    "get_range_config": OperationSpec("range", ("config", "get")),
    "set_range_config": OperationSpec(
        "range",
        ("config", "set"),
        {
            "file": OptionSpec("-f", required=True),
            "force": OptionSpec("--force", OptionKind.SWITCH),
        },
    ),
    "range_logs": OperationSpec("range", ("logs",)),
    "list_templates": OperationSpec("templates", ("list",), allows_user=False),
}

# Commands that must go to the admin API endpoint
ADMIN_COMMANDS: Final[tuple[tuple[str, str], ...]] = (
    ("users", "add"),
    ("users", "rm"),
)


def _check_token(name: str, value: str) -> str:
    if not value:
        raise InvalidArgumentError(f"'{name}' cannot be empty")
    if "\x00" in value:
        raise InvalidArgumentError(f"'{name}' contains a null byte: {value!r}")
    return value


def _check_user(user: Any) -> str | None:
    if user is None:
        return None
    if not isinstance(user, str):
        raise InvalidArgumentError(
            f"'user' must be a string, got {type(user).__name__}"
        )
    _check_token("user", user)
    # A leading dash would be read as another flag by the CLI
    if user.startswith("-"):
        raise InvalidArgumentError(f"'user' cannot start with '-': {user!r}")
    return user


def _option_tokens(name: str, spec: OptionSpec, value: Any) -> list[str]:
    if spec.kind is OptionKind.SWITCH:
        if not isinstance(value, bool):
            raise InvalidArgumentError(
                f"'{name}' must be a boolean, got {type(value).__name__}"
            )
        return [spec.flag] if value else []

    if spec.kind is OptionKind.LIST and isinstance(value, (list, tuple)):
        items = []
        for item in value:
            if not isinstance(item, str):
                raise InvalidArgumentError(
                    f"'{name}' items must be strings, got {type(item).__name__}"
                )
            items.append(_check_token(name, item.strip()))
        if not items:
            return []
        value = ",".join(items)

    if not isinstance(value, str):
        raise InvalidArgumentError(
            f"'{name}' must be a string, got {type(value).__name__}"
        )
    return [spec.flag, _check_token(name, value)]


def split_command(command: str, args: Any = None) -> list[str]:
    """Split a free-text command on whitespace and append explicit args.

    The text is split only, never evaluated, so quotes and shell
    metacharacters stay inside the resulting tokens.
    """
    if not isinstance(command, str):
        raise InvalidArgumentError(
            f"'command' must be a string, got {type(command).__name__}"
        )
    tokens = command.split()
    if args is not None:
        if not isinstance(args, (list, tuple)) or not all(
            isinstance(a, str) for a in args
        ):
            raise InvalidArgumentError("'args' must be a list of strings")
        tokens.extend(args)
    for token in tokens:
        _check_token("args", token)
    return tokens


def _present(supplied: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in supplied.items() if v is not None}


def _reject_unknown(
    operation: str, supplied: Mapping[str, Any], allowed: set[str]
) -> None:
    # Runs on the raw mapping, so a None value does not hide a bad name
    unknown = set(supplied) - allowed
    if unknown:
        raise InvalidArgumentError(
            f"Unknown option(s) for '{operation}': {', '.join(sorted(unknown))}"
        )


def _build_execute(params: Mapping[str, Any]) -> Command:
    tokens = split_command(params.get("command", ""), params.get("args"))
    if not tokens:
        raise InvalidArgumentError("'command' cannot be empty")
    # The wrapper adds the binary itself
    if tokens[0] == "ludus":
        tokens = tokens[1:]
        if not tokens:
            raise InvalidArgumentError("'command' cannot be just 'ludus'")
    return Command(
        name=tokens[0],
        arguments=tuple(tokens[1:]),
        acting_user=_check_user(params.get("user")),
    )


def get_operation(operation: str) -> OperationSpec:
    """Look up an operation declaration."""
    try:
        return OPERATIONS[operation]
    except KeyError:
        raise InvalidArgumentError(
            f"Unknown operation '{operation}'. "
            f"Available: {', '.join(sorted([*OPERATIONS, EXECUTE]))}"
        ) from None


def build(operation: str, params: Mapping[str, Any] | None = None) -> Command:
    """Validate parameters and build the command for an operation.

    Args:
        operation: Operation name from ``OPERATIONS`` or ``"execute"``.
        params: Option values keyed by option name, plus ``user``.
            ``None`` values are treated as absent, but their names must
            still be known options.

    Returns:
        Command ready for the process executor.

    Raises:
        InvalidArgumentError: Unknown operation or option, wrong value type,
            or a missing required option.
    """
    supplied = dict(params or {})

    if operation == EXECUTE:
        _reject_unknown(EXECUTE, supplied, {"command", "args", "user"})
        return _build_execute(_present(supplied))

    spec = get_operation(operation)
    allowed = set(spec.options) | ({"user"} if spec.allows_user else set())
    _reject_unknown(operation, supplied, allowed)
    params = _present(supplied)

    arguments = list(spec.subcommand)
    for name, option in spec.options.items():
        if name not in params:
            if option.required:
                raise InvalidArgumentError(f"'{name}' is required for '{operation}'")
            continue
        arguments.extend(_option_tokens(name, option, params[name]))

    return Command(
        name=spec.command,
        arguments=tuple(arguments),
        acting_user=_check_user(params.get("user")),
    )


def build_help(operation: str, params: Mapping[str, Any] | None = None) -> Command:
    """Build the ``--help`` variant of an operation.

    For ``execute``, ``params["command"]`` (optional) names the command path
    to get help for; an empty command asks for the top-level help.
    """
    if operation == EXECUTE:
        params = params or {}
        tokens = split_command(params.get("command") or "")
        if tokens and tokens[0] == "ludus":
            tokens = tokens[1:]
        tokens = [t for t in tokens if t != HELP_FLAG]
        if not tokens:
            return Command(name=HELP_FLAG)
        return Command(name=tokens[0], arguments=(*tokens[1:], HELP_FLAG))

    spec = get_operation(operation)
    return Command(name=spec.command, arguments=(*spec.subcommand, HELP_FLAG))


def timeout_profile(operation: str) -> TimeoutProfile:
    if operation == EXECUTE:
        return TimeoutProfile.DEFAULT
    return get_operation(operation).timeout_profile


def is_admin_command(command: Command) -> bool:
    """Whether the command needs the admin API endpoint."""
    return bool(command.arguments) and (
        command.name,
        command.arguments[0],
    ) in ADMIN_COMMANDS
