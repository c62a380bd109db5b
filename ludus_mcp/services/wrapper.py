"""High-level Ludus CLI operations.

``LudusCliWrapper`` is the only entry point tool handlers use. Each method
builds a command, runs exactly one process and normalizes its output.
Failures are returned as ``Result`` objects, never raised.
"""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from ludus_mcp.config import Config
from ludus_mcp.models import Command, ErrorKind, Result
from ludus_mcp.services import arguments
from ludus_mcp.services.arguments import EXECUTE, TimeoutProfile
from ludus_mcp.services.errors import LudusError
from ludus_mcp.services.executor import ProcessExecutor
from ludus_mcp.services.normalizer import normalize

logger = logging.getLogger(__name__)


class LudusCliWrapper:
    """Facade over the Ludus CLI.

    Example:
        >>> wrapper = LudusCliWrapper(Config())
        >>> result = await wrapper.get_range_status(user="alice")
        >>> result.success, result.data
    """

    def __init__(self, config: Config, executor: ProcessExecutor | None = None) -> None:
        """Initialize the wrapper.

        Args:
            config: Server configuration.
            executor: Optional executor; one is built from ``config`` if
                omitted.
        """
        self.config = config
        self.executor = executor or ProcessExecutor(
            binary=config.binary,
            env=config.cli_environment(),
            cwd=config.ensure_base_dir(),
        )
        self._timeouts = {
            TimeoutProfile.DEFAULT: config.command_timeout,
            TimeoutProfile.DEPLOY: config.deploy_timeout,
            TimeoutProfile.HELP: config.help_timeout,
        }

    def timeout_for(self, profile: TimeoutProfile) -> float:
        return self._timeouts[profile]

    async def _run(
        self,
        command: Command,
        profile: TimeoutProfile,
        require_data: bool = False,
    ) -> Result:
        extra_env = None
        if arguments.is_admin_command(command) and self.config.admin_url:
            extra_env = {"LUDUS_URL": self.config.admin_url}

        logger.info(
            "Executing %s",
            command.display(self.config.binary),
            extra={
                "context": {
                    "acting_user": command.acting_user,
                    "admin_endpoint": extra_env is not None,
                    "timeout": self.timeout_for(profile),
                }
            },
        )
        try:
            outcome = await self.executor.run(
                command, self.timeout_for(profile), extra_env=extra_env
            )
            result = normalize(outcome, require_data=require_data)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("Unexpected error running %s", command.name)
            return Result.failure(
                ErrorKind.EXECUTION_FAILURE, f"Command failed: {e}"
            )

        if result.success:
            logger.info("Command succeeded: %s [%dms]", command.name, outcome.duration_ms)
        else:
            logger.warning(
                "Command failed: %s -> %s: %s",
                command.name,
                result.error_kind.value if result.error_kind else "unknown",
                result.message[:200],
            )
        return result

    async def run_operation(
        self,
        operation: str,
        params: Mapping[str, Any] | None = None,
        require_data: bool = False,
    ) -> Result:
        """Build and run a declared operation.

        Invalid parameters are reported without spawning a process.
        """
        try:
            command = arguments.build(operation, params)
        except LudusError as e:
            logger.warning("Rejected %s: %s", operation, e.message)
            return Result.failure(e.kind, e.message)
        return await self._run(
            command, arguments.timeout_profile(operation), require_data
        )

    async def help(self, operation: str = EXECUTE, command: str | None = None) -> Result:
        """Get ``--help`` output for an operation or a free-text command path.

        Args:
            operation: Declared operation name, or ``"execute"`` to use
                ``command``.
            command: Command path such as ``"range deploy"``; ignored unless
                ``operation`` is ``"execute"``. Empty means top-level help.
        """
        try:
            help_command = arguments.build_help(operation, {"command": command})
        except LudusError as e:
            return Result.failure(e.kind, e.message)
        return await self._run(help_command, TimeoutProfile.HELP)

    async def execute_arbitrary_command(
        self,
        command: str,
        args: list[str] | None = None,
        user: str | None = None,
        require_data: bool = False,
    ) -> Result:
        """Run any Ludus CLI command (without the ``ludus`` prefix)."""
        return await self.run_operation(
            EXECUTE,
            {"command": command, "args": args, "user": user},
            require_data=require_data,
        )

    async def deploy_range(
        self,
        user: str | None = None,
        config_path: str | None = None,
        force: bool = False,
        tags: str | list[str] | None = None,
        limit: str | None = None,
        only_roles: str | list[str] | None = None,
        verbose_ansible: bool = False,
    ) -> Result:
        """Start a range deployment.

        Returns once the CLI has accepted the deployment; use
        ``get_range_status`` to follow progress. When ``config_path`` is
        given, that configuration is set first and its failure is returned
        as-is.
        """
        if config_path:
            config_result = await self.set_range_config(config_path, user, force)
            if not config_result.success:
                return config_result

        return await self.run_operation(
            "deploy_range",
            {
                "user": user,
                "force": force,
                "tags": tags,
                "limit": limit,
                "only_roles": only_roles,
                "verbose_ansible": verbose_ansible,
            },
        )

    async def get_range_status(self, user: str | None = None) -> Result:
        return await self.run_operation("range_status", {"user": user})

    async def list_user_ranges(self, user: str | None = None) -> Result:
        return await self.run_operation("list_user_ranges", {"user": user})

    async def get_tags(self, user: str | None = None) -> Result:
        """List the Ansible tags usable with ``deploy_range``."""
        return await self.run_operation("get_tags", {"user": user})

    async def list_all_users(self) -> Result:
        return await self.run_operation("list_all_users")

    async def abort_range(self, user: str | None = None) -> Result:
        return await self.run_operation("abort_range", {"user": user})

    async def destroy_range(
        self, user: str | None = None, no_prompt: bool = False
    ) -> Result:
        """Remove all VMs of a range. Irreversible."""
        return await self.run_operation(
            "destroy_range", {"user": user, "no_prompt": no_prompt}
        )

    async def power_on(
        self, user: str | None = None, names: str | list[str] | None = None
    ) -> Result:
        return await self.run_operation("power_on", {"user": user, "names": names})

    async def power_off(
        self, user: str | None = None, names: str | list[str] | None = None
    ) -> Result:
        return await self.run_operation("power_off", {"user": user, "names": names})

    async def get_range_config(self, user: str | None = None) -> Result:
        return await self.run_operation("get_range_config", {"user": user})

    async def set_range_config(
        self,
        config_path: str,
        user: str | None = None,
        force: bool = False,
    ) -> Result:
        return await self.run_operation(
            "set_range_config", {"file": config_path, "user": user, "force": force}
        )

    async def get_range_logs(self, user: str | None = None) -> Result:
        return await self.run_operation("range_logs", {"user": user})

    async def list_templates(self) -> Result:
        return await self.run_operation("list_templates")
