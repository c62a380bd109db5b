"""MCP tool registration for Ludus operations.

Tool docstrings become the descriptions shown to the model.
"""

from typing import Any, Literal

from fastmcp import FastMCP

from ludus_mcp.services.range_configs import RangeConfigStore
from ludus_mcp.services.wrapper import LudusCliWrapper
from ludus_mcp.tools import handlers

TOOL_NAMES = (
    "deploy_range",
    "get_range_status",
    "list_user_ranges",
    "get_tags",
    "list_all_users",
    "ludus_cli_execute",
    "ludus_help",
    "range_abort",
    "destroy_range",
    "ludus_power",
    "get_range_config",
    "set_range_config",
    "get_range_logs",
    "list_templates",
    "read_range_config",
    "write_range_config",
    "validate_range_config",
    "list_range_configs",
)


def register_tools(
    server: FastMCP, wrapper: LudusCliWrapper, range_configs: RangeConfigStore
) -> None:
    """Register every Ludus tool on the server.

    CLI tools are bound to one wrapper; the config file tools to one store.
    """

    async def deploy_range(
        user: str | None = None,
        config_path: str | None = None,
        force: bool = False,
        tags: str | None = None,
        limit: str | None = None,
        only_roles: str | None = None,
        verbose_ansible: bool = False,
        help: bool = False,
    ) -> dict[str, Any]:
        """Deploy a Ludus range from the currently set configuration.

        Returns as soon as the deployment has started; deployments take
        10-45 minutes. Poll progress with get_range_status.

        Args:
            user: User ID to deploy for (admin only). Omit for yourself.
            config_path: Range config YAML to set before deploying. Omit to
                deploy the existing configuration.
            force: Force deployment even if a deployment is in progress.
            tags: Comma-separated Ansible tags to run (e.g. "dns,custom-groups").
            limit: Limit deployment to VMs matching this pattern (must
                include localhost or no plays will run).
            only_roles: Comma-separated user-defined roles to run.
            verbose_ansible: Enable verbose Ansible output.
            help: Return CLI help for this operation instead of deploying.
        """
        return await handlers.handle_deploy_range(
            wrapper,
            user=user,
            config_path=config_path,
            force=force,
            tags=tags,
            limit=limit,
            only_roles=only_roles,
            verbose_ansible=verbose_ansible,
            help=help,
        )

    async def get_range_status(
        user: str | None = None, help: bool = False
    ) -> dict[str, Any]:
        """Get deployment state, VMs and details of a Ludus range.

        Args:
            user: User ID to check (admin only). Omit for yourself.
            help: Return CLI help instead.
        """
        return await handlers.handle_get_range_status(wrapper, user, help)

    async def list_user_ranges(
        user: str | None = None, help: bool = False
    ) -> dict[str, Any]:
        """List the ranges of the current user or, for admins, another user.

        Args:
            user: User ID to list ranges for (admin only).
            help: Return CLI help instead.
        """
        return await handlers.handle_list_user_ranges(wrapper, user, help)

    async def get_tags(user: str | None = None, help: bool = False) -> dict[str, Any]:
        """List the Ansible tags available to deploy_range.

        Args:
            user: User ID to get tags for (admin only).
            help: Return CLI help instead.
        """
        return await handlers.handle_get_tags(wrapper, user, help)

    async def list_all_users(help: bool = False) -> dict[str, Any]:
        """List all users in the Ludus system (admin operation).

        Args:
            help: Return CLI help instead.
        """
        return await handlers.handle_list_all_users(wrapper, help)

    async def ludus_cli_execute(
        command: str,
        args: list[str] | None = None,
        user: str | None = None,
    ) -> dict[str, Any]:
        """Execute an arbitrary Ludus CLI command and return its output.

        Do not include the "ludus" prefix. Prefer the dedicated tools when one
        exists, and confirm destructive commands (range rm, users rm) with the
        user first. For help use ludus_help or a "--help" flag; the CLI has
        no "help" subcommand.

        Args:
            command: Command path, e.g. "range logs" or "templates list".
            args: Extra arguments, e.g. ["--tags", "dns"].
            user: User ID to act as (admin only).
        """
        return await handlers.handle_ludus_cli_execute(wrapper, command, args, user)

    async def ludus_help(
        command: str | None = None, subcommand: str | None = None
    ) -> dict[str, Any]:
        """Get help for Ludus CLI commands, split into sections.

        Args:
            command: Command to get help for (e.g. "range", "templates").
                Omit for general help.
            subcommand: Subcommand (e.g. "deploy", "logs"). Needs command.
        """
        return await handlers.handle_ludus_help(wrapper, command, subcommand)

    async def range_abort(user: str | None = None, help: bool = False) -> dict[str, Any]:
        """Abort a running range deployment.

        Args:
            user: User ID whose deployment to abort (admin only).
            help: Return CLI help instead.
        """
        return await handlers.handle_range_abort(wrapper, user, help)

    async def destroy_range(
        user: str | None = None, no_prompt: bool = False, help: bool = False
    ) -> dict[str, Any]:
        """Permanently destroy a range and all of its VMs.

        This cannot be undone. Confirm with the user before calling.

        Args:
            user: User ID whose range to destroy (admin only).
            no_prompt: Skip the CLI confirmation prompt.
            help: Return CLI help instead.
        """
        return await handlers.handle_destroy_range(wrapper, user, no_prompt, help)

    async def ludus_power(
        action: Literal["on", "off"],
        user: str | None = None,
        vm_names: str | None = None,
        help: bool = False,
    ) -> dict[str, Any]:
        """Power range VMs on or off.

        Args:
            action: "on" or "off".
            user: User ID whose range to control (admin only).
            vm_names: Comma-separated VM names. Omit for all VMs.
            help: Return CLI help instead.
        """
        return await handlers.handle_ludus_power(wrapper, action, user, vm_names, help)

    async def get_range_config(
        user: str | None = None, help: bool = False
    ) -> dict[str, Any]:
        """Get the currently set range configuration.

        Args:
            user: User ID (admin only).
            help: Return CLI help instead.
        """
        return await handlers.handle_get_range_config(wrapper, user, help)

    async def set_range_config(
        config_path: str | None = None,
        user: str | None = None,
        force: bool = False,
        help: bool = False,
    ) -> dict[str, Any]:
        """Set the range configuration from a YAML file on the server.

        Args:
            config_path: Path to the range config YAML. Relative paths are
                resolved from the server working directory, so a file saved
                with write_range_config is "range-config-templates/<path>".
            user: User ID (admin only).
            force: Set the config even if the range is being deployed.
            help: Return CLI help instead.
        """
        return await handlers.handle_set_range_config(
            wrapper, config_path, user, force, help
        )

    async def get_range_logs(
        user: str | None = None, help: bool = False
    ) -> dict[str, Any]:
        """Get the latest range deployment logs.

        Args:
            user: User ID (admin only).
            help: Return CLI help instead.
        """
        return await handlers.handle_get_range_logs(wrapper, user, help)

    async def list_templates(help: bool = False) -> dict[str, Any]:
        """List VM templates available on the Ludus server.

        Args:
            help: Return CLI help instead.
        """
        return await handlers.handle_list_templates(wrapper, help)

    async def read_range_config(source: str) -> dict[str, Any]:
        """Read a saved range configuration file.

        Args:
            source: Path relative to the range config directory, e.g.
                "ad-lab.yml" or "alice/ad-lab.yml".
        """
        return await handlers.handle_read_range_config(range_configs, source)

    async def write_range_config(
        content: str, file_path: str, user: str | None = None
    ) -> dict[str, Any]:
        """Validate and save a range configuration file.

        Invalid configurations are rejected and not written. Store secrets as
        Ludus credentials rather than literal values in the file.

        Args:
            content: Range configuration YAML.
            file_path: Path relative to the range config directory, ending
                in .yml, .yaml or .json.
            user: Save a bare filename under this user's subdirectory.
        """
        return await handlers.handle_write_range_config(
            range_configs, content, file_path, user
        )

    async def validate_range_config(
        source: str | None = None, content: str | None = None
    ) -> dict[str, Any]:
        """Check a range configuration without saving or applying it.

        Args:
            source: Saved config path relative to the range config directory.
            content: YAML to validate instead of a saved file.
        """
        return await handlers.handle_validate_range_config(
            range_configs, source, content
        )

    async def list_range_configs(
        directory: str | None = None, recursive: bool | None = None
    ) -> dict[str, Any]:
        """List saved range configuration files and whether each is valid.

        Args:
            directory: Subdirectory to list. Omit to list everything.
            recursive: Include subdirectories (default: only when no
                directory is given).
        """
        return await handlers.handle_list_range_configs(
            range_configs, directory, recursive
        )

    for tool in (
        deploy_range,
        get_range_status,
        list_user_ranges,
        get_tags,
        list_all_users,
        ludus_cli_execute,
        ludus_help,
        range_abort,
        destroy_range,
        ludus_power,
        get_range_config,
        set_range_config,
        get_range_logs,
        list_templates,
        read_range_config,
        write_range_config,
        validate_range_config,
        list_range_configs,
    ):
        server.tool(output_schema=None)(tool)
