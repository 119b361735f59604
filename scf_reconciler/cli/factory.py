"""Factories wiring configuration to clients and engine components."""

import structlog

from scf_reconciler.clients.scf import SCFClient
from scf_reconciler.config.models import ReconcilerConfig, SCFApiConfig
from scf_reconciler.core.lifecycle import ResourceLifecycle
from scf_reconciler.core.store import StateStore
from scf_reconciler.resources import get_descriptor
from scf_reconciler.security.validation import sanitize_log_input

logger = structlog.get_logger(__name__)


class ClientFactory:
    """Factory for creating API clients from configuration."""

    @staticmethod
    def create_scf_client(config: SCFApiConfig) -> SCFClient:
        """Create the SCF client from configuration.

        Args:
            config: SCF API configuration

        Returns:
            Configured SCF client

        Raises:
            ValueError: If configuration is invalid
        """
        try:
            return SCFClient(
                service_account_token=config.service_account_token,
                api_url=config.base_url,
                timeout_seconds=config.timeout_seconds,
            )
        except Exception as e:
            logger.error(
                "Failed to create SCF client",
                api_url=sanitize_log_input(config.base_url),
                error=sanitize_log_input(str(e)),
            )
            raise ValueError(f"Failed to create SCF client: {e}") from e


class ComponentFactory:
    """Factory for creating engine components."""

    @staticmethod
    def create_state_store(config: ReconcilerConfig) -> StateStore:
        return StateStore(config.state_dir)

    @staticmethod
    def create_lifecycle(config: ReconcilerConfig, client: SCFClient, resource_type: str) -> ResourceLifecycle:
        """Create the lifecycle orchestrator for one resource type.

        Raises:
            KeyError: If the resource type is unknown
        """
        descriptor = get_descriptor(resource_type)
        return ResourceLifecycle(descriptor, client, config.region)
