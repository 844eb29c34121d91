"""
Factory for creating durable backends.
"""

from pagenotes.config import Config
from pagenotes.core.backend.base import KeyValueBackend
from pagenotes.core.backend.memory import InMemoryBackend
from pagenotes.core.backend.sqlite import SQLiteBackend
from pagenotes.utils.exceptions import ConfigurationError


class BackendFactory:
    """Factory for creating key-value backends from configuration."""

    @staticmethod
    def create(config: Config) -> KeyValueBackend:
        """
        Create backend from configuration.

        Args:
            config: Main configuration object

        Returns:
            Backend instance (not yet initialized)

        Raises:
            ConfigurationError: If backend is not supported
        """
        storage = config.storage
        if storage.backend == "sqlite":
            return SQLiteBackend(db_path=storage.db_path)
        elif storage.backend == "memory":
            return InMemoryBackend(quota_bytes=storage.quota_bytes)
        else:
            raise ConfigurationError(
                f"Unsupported storage backend: {storage.backend}",
                context={"backend": storage.backend},
            )
