"""Dependency injection container for Ludus MCP.

The wrapper and the range config store are built once here and handed to
the tool handlers, instead of being looked up from module-level state.
"""

from dataclasses import dataclass

from ludus_mcp.config import Config
from ludus_mcp.services.range_configs import RangeConfigStore
from ludus_mcp.services.wrapper import LudusCliWrapper


@dataclass
class Dependencies:
    """Container for Ludus MCP dependencies.

    Example:
        deps = Dependencies.create()
        result = await deps.wrapper.list_user_ranges()
    """

    config: Config
    wrapper: LudusCliWrapper
    range_configs: RangeConfigStore

    @classmethod
    def create(cls) -> "Dependencies":
        """Create dependencies with configuration from the environment."""
        return cls.from_config(Config())

    @classmethod
    def from_config(cls, config: Config) -> "Dependencies":
        """Create dependencies with a custom configuration.

        Args:
            config: Custom Config instance

        Returns:
            Dependencies with the wrapper and config store initialized
        """
        return cls(
            config=config,
            wrapper=LudusCliWrapper(config),
            range_configs=RangeConfigStore(config.range_config_dir),
        )
