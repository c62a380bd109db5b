"""Tool handlers for Ludus operations.

Each handler takes the shared ``LudusCliWrapper`` (or ``RangeConfigStore``)
explicitly and returns a JSON-serializable dict. Failures come back as
``{"success": False, ...}``.
"""

import logging
from typing import TYPE_CHECKING, Any, Literal

from ludus_mcp.config import RANGE_CONFIG_DIRNAME
from ludus_mcp.models import ErrorKind, Result
from ludus_mcp.services.arguments import EXECUTE
from ludus_mcp.utils.parser import parse_help_output

if TYPE_CHECKING:
    from ludus_mcp.services.range_configs import RangeConfigStore
    from ludus_mcp.services.wrapper import LudusCliWrapper

logger = logging.getLogger(__name__)

CURRENT_USER = "current user"

STATUS_TROUBLESHOOTING = [
    "Verify the user has a deployed range",
    "Check if you have admin permissions (if querying other users)",
    "Ensure your Ludus server connection is working",
    "Try deploying a range first if none exists",
]

PERMISSION_HINT = (
    "Acting for another user requires an admin API key; "
    "omit 'user' to act as yourself."
)


def _target(user: str | None) -> str:
    return user or CURRENT_USER


def _failure(result: Result, **fields: Any) -> dict[str, Any]:
    payload = {**result.to_dict(), **fields}
    if result.error_kind is ErrorKind.PERMISSION_DENIED:
        payload["hint"] = PERMISSION_HINT
    return payload


async def _help_response(
    wrapper: "LudusCliWrapper", tool: str, operation: str
) -> dict[str, Any]:
    logger.info("Getting help for %s", tool)
    result = await wrapper.help(operation)
    if not result.success:
        return _failure(result, help=True)
    return {
        "success": True,
        "message": f"Help information for {tool}",
        "help": True,
        "content": result.raw_output or result.message,
    }


async def handle_deploy_range(
    wrapper: "LudusCliWrapper",
    user: str | None = None,
    config_path: str | None = None,
    force: bool = False,
    tags: str | list[str] | None = None,
    limit: str | None = None,
    only_roles: str | list[str] | None = None,
    verbose_ansible: bool = False,
    help: bool = False,
) -> dict[str, Any]:
    """Start a range deployment and report that it was initiated."""
    if help:
        return await _help_response(wrapper, "deploy_range", "deploy_range")

    result = await wrapper.deploy_range(
        user=user,
        config_path=config_path,
        force=force,
        tags=tags,
        limit=limit,
        only_roles=only_roles,
        verbose_ansible=verbose_ansible,
    )
    configuration = config_path or "existing configuration"
    if not result.success:
        return _failure(result, user=_target(user), configPath=configuration)

    return {
        "success": True,
        "message": f"Range deployment initiated for {_target(user)}",
        "details": result.data,
        "user": _target(user),
        "configPath": configuration,
        "rawOutput": result.raw_output,
        "next": "Use get_range_status to monitor deployment progress",
    }


async def handle_get_range_status(
    wrapper: "LudusCliWrapper", user: str | None = None, help: bool = False
) -> dict[str, Any]:
    if help:
        return await _help_response(wrapper, "get_range_status", "range_status")

    result = await wrapper.get_range_status(user)
    if not result.success:
        return _failure(
            result, user=_target(user), troubleshooting=STATUS_TROUBLESHOOTING
        )
    return {
        "success": True,
        "message": f"Range status retrieved for {_target(user)}",
        "user": _target(user),
        "status": result.data,
        "rawOutput": result.raw_output,
    }


async def handle_list_user_ranges(
    wrapper: "LudusCliWrapper", user: str | None = None, help: bool = False
) -> dict[str, Any]:
    if help:
        return await _help_response(wrapper, "list_user_ranges", "list_user_ranges")

    result = await wrapper.list_user_ranges(user)
    if not result.success:
        return _failure(result, user=_target(user))

    ranges = result.data
    if isinstance(ranges, dict):
        # Single-range responses are not wrapped in a list
        ranges = [ranges]
    return {
        "success": True,
        "message": f"Ranges retrieved for {_target(user)}",
        "user": _target(user),
        "ranges": ranges,
        "count": len(ranges) if isinstance(ranges, list) else None,
        "rawOutput": result.raw_output,
    }


async def handle_get_tags(
    wrapper: "LudusCliWrapper", user: str | None = None, help: bool = False
) -> dict[str, Any]:
    if help:
        return await _help_response(wrapper, "get_tags", "get_tags")

    result = await wrapper.get_tags(user)
    if not result.success:
        return _failure(result, user=_target(user))
    return {
        "success": True,
        "message": f"Available deployment tags retrieved for {_target(user)}",
        "user": _target(user),
        "tags": result.data,
        "rawOutput": result.raw_output,
    }


async def handle_list_all_users(
    wrapper: "LudusCliWrapper", help: bool = False
) -> dict[str, Any]:
    if help:
        return await _help_response(wrapper, "list_all_users", "list_all_users")

    result = await wrapper.list_all_users()
    if not result.success:
        return _failure(result)

    users = result.data
    return {
        "success": True,
        "message": "All users retrieved",
        "users": users,
        "count": len(users) if isinstance(users, list) else None,
        "rawOutput": result.raw_output,
    }


async def handle_ludus_cli_execute(
    wrapper: "LudusCliWrapper",
    command: str,
    args: list[str] | None = None,
    user: str | None = None,
) -> dict[str, Any]:
    """Run an arbitrary Ludus CLI command."""
    result = await wrapper.execute_arbitrary_command(command, args, user)
    # Display only; the command ran as an argument vector
    display = " ".join(["ludus", command.strip(), *(args or [])])
    payload: dict[str, Any] = {
        "success": result.success,
        "command": display,
        "user": _target(user),
        "output": result.raw_output or result.message,
        "data": result.data,
        "message": result.message,
    }
    if not result.success:
        payload["errorKind"] = result.error_kind.value if result.error_kind else None
    return payload


async def handle_ludus_help(
    wrapper: "LudusCliWrapper",
    command: str | None = None,
    subcommand: str | None = None,
) -> dict[str, Any]:
    """Get CLI help, split into sections."""
    if subcommand and not command:
        return Result.failure(
            ErrorKind.INVALID_ARGUMENT, "'subcommand' requires 'command'"
        ).to_dict()

    path = " ".join(part.strip() for part in (command, subcommand) if part)
    result = await wrapper.help(EXECUTE, path)
    help_type = path or "general"
    full_command = f"ludus {path} --help" if path else "ludus --help"

    if not result.success:
        return _failure(result, command=full_command, helpType=help_type)

    content = result.raw_output or result.message
    return {
        "success": True,
        "command": full_command,
        "helpType": help_type,
        "content": content,
        "sections": parse_help_output(content),
    }


async def handle_range_abort(
    wrapper: "LudusCliWrapper", user: str | None = None, help: bool = False
) -> dict[str, Any]:
    if help:
        return await _help_response(wrapper, "range_abort", "abort_range")

    result = await wrapper.abort_range(user)
    if not result.success:
        return _failure(result, user=_target(user))
    return {
        "success": True,
        "message": f"Range deployment aborted for {_target(user)}",
        "user": _target(user),
        "details": result.data,
        "rawOutput": result.raw_output,
    }


async def handle_destroy_range(
    wrapper: "LudusCliWrapper",
    user: str | None = None,
    no_prompt: bool = False,
    help: bool = False,
) -> dict[str, Any]:
    if help:
        return await _help_response(wrapper, "destroy_range", "destroy_range")

    logger.warning("Destroying range for %s", _target(user))
    result = await wrapper.destroy_range(user, no_prompt=no_prompt)
    if not result.success:
        return _failure(result, user=_target(user))
    return {
        "success": True,
        "message": f"Range destroyed for {_target(user)}",
        "user": _target(user),
        "details": result.data,
        "rawOutput": result.raw_output,
    }


async def handle_ludus_power(
    wrapper: "LudusCliWrapper",
    action: Literal["on", "off"],
    user: str | None = None,
    vm_names: str | list[str] | None = None,
    help: bool = False,
) -> dict[str, Any]:
    operation = {"on": "power_on", "off": "power_off"}.get(action)
    if operation is None:
        return Result.failure(
            ErrorKind.INVALID_ARGUMENT,
            f"'action' must be 'on' or 'off', got {action!r}",
        ).to_dict()
    if help:
        return await _help_response(wrapper, "ludus_power", operation)

    if action == "on":
        result = await wrapper.power_on(user, vm_names)
    else:
        result = await wrapper.power_off(user, vm_names)
    if not result.success:
        return _failure(result, user=_target(user), action=action)
    return {
        "success": True,
        "message": f"Power {action} requested for {_target(user)}",
        "user": _target(user),
        "action": action,
        "vms": vm_names or "all",
        "details": result.data,
        "rawOutput": result.raw_output,
    }


async def handle_get_range_config(
    wrapper: "LudusCliWrapper", user: str | None = None, help: bool = False
) -> dict[str, Any]:
    if help:
        return await _help_response(wrapper, "get_range_config", "get_range_config")

    result = await wrapper.get_range_config(user)
    if not result.success:
        return _failure(result, user=_target(user))
    # Range configs are YAML, so the text is the payload
    return {
        "success": True,
        "user": _target(user),
        "config": result.data if result.data is not None else result.message,
        "rawOutput": result.raw_output,
    }


async def handle_set_range_config(
    wrapper: "LudusCliWrapper",
    config_path: str | None = None,
    user: str | None = None,
    force: bool = False,
    help: bool = False,
) -> dict[str, Any]:
    if help:
        return await _help_response(wrapper, "set_range_config", "set_range_config")
    if not config_path:
        return Result.failure(
            ErrorKind.INVALID_ARGUMENT, "'config_path' is required"
        ).to_dict()

    result = await wrapper.set_range_config(config_path, user, force)
    if not result.success:
        return _failure(result, user=_target(user), configPath=config_path)
    return {
        "success": True,
        "message": f"Range configuration set for {_target(user)}",
        "user": _target(user),
        "configPath": config_path,
        "rawOutput": result.raw_output,
        "next": "Use deploy_range to deploy this configuration",
    }


async def handle_get_range_logs(
    wrapper: "LudusCliWrapper", user: str | None = None, help: bool = False
) -> dict[str, Any]:
    if help:
        return await _help_response(wrapper, "get_range_logs", "range_logs")

    result = await wrapper.get_range_logs(user)
    if not result.success:
        return _failure(result, user=_target(user))
    return {
        "success": True,
        "user": _target(user),
        "logs": result.data if result.data is not None else result.message,
        "rawOutput": result.raw_output,
    }


async def handle_list_templates(
    wrapper: "LudusCliWrapper", help: bool = False
) -> dict[str, Any]:
    if help:
        return await _help_response(wrapper, "list_templates", "list_templates")

    result = await wrapper.list_templates()
    if not result.success:
        return _failure(result)
    return {
        "success": True,
        "templates": result.data,
        "rawOutput": result.raw_output,
    }


async def handle_read_range_config(
    store: "RangeConfigStore", source: str
) -> dict[str, Any]:
    """Return the text of a saved range config."""
    result = store.read(source)
    if not result.success:
        return _failure(result, source=source)
    return {
        "success": True,
        "source": source,
        "path": result.data["path"],
        "content": result.data["content"],
        "next": "Use write_range_config to modify it, or set_range_config to apply it",
    }


async def handle_write_range_config(
    store: "RangeConfigStore",
    content: str,
    file_path: str,
    user: str | None = None,
) -> dict[str, Any]:
    """Validate and save a range config. Invalid configs are not written."""
    result = store.write(content, file_path, user)
    if not result.success:
        return _failure(result, filePath=file_path)

    payload = {
        "success": True,
        "message": result.message,
        "path": result.data["path"],
        "relativePath": result.data["relativePath"],
        "validation": result.data["validation"],
        "next": (
            "Use set_range_config with config_path "
            f"'{RANGE_CONFIG_DIRNAME}/{result.data['relativePath']}' to apply it"
        ),
    }
    if result.data["credentialWarning"]:
        payload["warning"] = (
            "The configuration appears to contain a literal secret. Store "
            "secrets as Ludus credentials and reference them instead."
        )
    return payload


async def handle_validate_range_config(
    store: "RangeConfigStore",
    source: str | None = None,
    content: str | None = None,
) -> dict[str, Any]:
    """Validate inline YAML or a saved range config without saving anything."""
    result = store.validate(content=content, source=source)
    if not result.success:
        return _failure(result, source=source)
    return {
        "success": True,
        "message": result.message,
        "source": result.data["source"],
        **result.data["validation"],
    }


async def handle_list_range_configs(
    store: "RangeConfigStore",
    directory: str | None = None,
    recursive: bool | None = None,
) -> dict[str, Any]:
    result = store.list_configs(directory, recursive)
    if not result.success:
        return _failure(result, directory=directory)
    return {
        "success": True,
        "message": result.message,
        "directory": directory or ".",
        "configs": result.data,
        "count": len(result.data),
    }
