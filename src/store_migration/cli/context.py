"""
CLI context for Store Bridge.

Holds the configuration, clients and state shared by every command. Each
piece is built on first access.
"""

from dataclasses import dataclass, field
from pathlib import Path

from store_migration.client.destination_client import BigCommerceClient
from store_migration.client.source_client import WooCommerceClient
from store_migration.config import MigrationConfig, load_config_from_yaml
from store_migration.migration.state import MigrationState
from store_migration.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class MigrationContext:
    """
    Context object for CLI commands.

    Attributes:
        config_path: Path to configuration file
        log_level: Console logging level
        log_file: Optional log file path
    """

    config_path: Path | None = None
    log_level: str = "WARNING"
    log_file: Path | None = None

    _config: MigrationConfig | None = field(default=None, init=False, repr=False)
    _source_client: WooCommerceClient | None = field(default=None, init=False, repr=False)
    _destination_client: BigCommerceClient | None = field(default=None, init=False, repr=False)
    _migration_state: MigrationState | None = field(default=None, init=False, repr=False)

    @property
    def config(self) -> MigrationConfig:
        """Get or load migration configuration."""
        if self._config is None:
            if self.config_path is None:
                raise ValueError(
                    "Configuration file path not provided. "
                    "Use --config option or set STORE_BRIDGE_CONFIG environment variable."
                )

            logger.debug("loading_configuration", config_path=str(self.config_path))
            self._config = load_config_from_yaml(self.config_path)

        return self._config

    @property
    def source_client(self) -> WooCommerceClient:
        """Get or create the source store client."""
        if self._source_client is None:
            logger.debug("creating_source_client", url=self.config.source.url)
            self._source_client = WooCommerceClient(
                config=self.config.source,
                rate_limit=self.config.performance.rate_limit,
                log_payloads=self.config.logging.log_payloads,
                max_payload_size=self.config.logging.max_payload_size,
            )

        return self._source_client

    @property
    def destination_client(self) -> BigCommerceClient:
        """Get or create the destination store client."""
        if self._destination_client is None:
            logger.debug(
                "creating_destination_client", store_hash=self.config.destination.store_hash
            )
            self._destination_client = BigCommerceClient(
                config=self.config.destination,
                rate_limit=self.config.performance.rate_limit,
                log_payloads=self.config.logging.log_payloads,
                max_payload_size=self.config.logging.max_payload_size,
            )

        return self._destination_client

    @property
    def migration_state(self) -> MigrationState:
        """Get or create the migration state store."""
        if self._migration_state is None:
            logger.debug("initializing_migration_state", db_path=self.config.state.db_path)
            self._migration_state = MigrationState(config=self.config.state)

        return self._migration_state

    async def close_clients(self) -> None:
        """Close whichever HTTP clients were created."""
        if self._source_client is not None:
            await self._source_client.close()
            self._source_client = None
        if self._destination_client is not None:
            await self._destination_client.close()
            self._destination_client = None
