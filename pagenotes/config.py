"""
Configuration for PageNotes.

Supports loading from:
1. Environment variables (highest priority)
2. YAML config file
3. Default values (fallback)
"""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class StorageConfig(BaseModel):
    """Durable backend configuration."""

    backend: str = "sqlite"  # sqlite, memory
    db_path: str = "data/pagenotes.db"
    storage_key: str = "pagenotes"
    # Optional: byte quota enforced by the in-memory backend
    quota_bytes: int | None = None


class NotesConfig(BaseModel):
    """Note store engine configuration."""

    max_text_length: int = 10_000
    write_verify_retries: int = 3
    # Deleted note ids remembered in the snapshot
    deleted_id_history: int = 1000
    page_key_policy: str = "url"  # origin, url, full


class BridgeConfig(BaseModel):
    """Context bridge configuration."""

    request_timeout: float = 5.0
    server_id: str = "background"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    log_to_file: bool = False
    log_dir: str = "logs"
    file_rotation: str = "10 MB"
    file_retention: str = "7 days"
    compression: str = "zip"
    serialize: bool = True


class Config(BaseModel):
    """Main configuration."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    notes: NotesConfig = Field(default_factory=NotesConfig)
    bridge: BridgeConfig = Field(default_factory=BridgeConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "Config":
        """
        Load configuration from environment variables.

        Priority: .env file -> system environment variables -> defaults

        Args:
            env_file: Optional path to .env file (default: .env in working directory)

        Returns:
            Config instance

        Environment variables:
            PAGENOTES_STORAGE_BACKEND: Durable backend (sqlite, memory)
            PAGENOTES_STORAGE_DB_PATH: SQLite database path
            PAGENOTES_STORAGE_KEY: Backend key holding the snapshot
            PAGENOTES_STORAGE_QUOTA_BYTES: Quota for the in-memory backend
            PAGENOTES_MAX_TEXT_LENGTH: Maximum note length
            PAGENOTES_WRITE_VERIFY_RETRIES: Re-apply attempts after a lost update
            PAGENOTES_DELETED_ID_HISTORY: Deleted note ids kept in the snapshot
            PAGENOTES_PAGE_KEY_POLICY: origin, url or full
            PAGENOTES_BRIDGE_TIMEOUT: Bridge request timeout in seconds
            PAGENOTES_BRIDGE_SERVER_ID: Context id of the privileged context
            PAGENOTES_LOG_LEVEL: Log level
        """
        if env_file:
            load_dotenv(env_file)
        elif Path(".env").exists():
            load_dotenv()

        def get_env(key: str, default: Any = None, cast: type | None = None) -> Any:
            """Get environment variable with type conversion."""
            value = os.getenv(key)
            if value is None or value == "":
                return default
            if cast is not None:
                return cast(value)
            if isinstance(default, bool):
                return str(value).lower() in ("true", "1", "yes")
            if isinstance(default, int):
                return int(value)
            if isinstance(default, float):
                return float(value)
            return value

        return cls(
            storage=StorageConfig(
                backend=get_env("PAGENOTES_STORAGE_BACKEND", "sqlite"),
                db_path=get_env("PAGENOTES_STORAGE_DB_PATH", "data/pagenotes.db"),
                storage_key=get_env("PAGENOTES_STORAGE_KEY", "pagenotes"),
                quota_bytes=get_env("PAGENOTES_STORAGE_QUOTA_BYTES", cast=int),
            ),
            notes=NotesConfig(
                max_text_length=get_env("PAGENOTES_MAX_TEXT_LENGTH", 10_000),
                write_verify_retries=get_env("PAGENOTES_WRITE_VERIFY_RETRIES", 3),
                deleted_id_history=get_env("PAGENOTES_DELETED_ID_HISTORY", 1000),
                page_key_policy=get_env("PAGENOTES_PAGE_KEY_POLICY", "url"),
            ),
            bridge=BridgeConfig(
                request_timeout=get_env("PAGENOTES_BRIDGE_TIMEOUT", 5.0),
                server_id=get_env("PAGENOTES_BRIDGE_SERVER_ID", "background"),
            ),
            logging=LoggingConfig(
                level=get_env("PAGENOTES_LOG_LEVEL", "INFO"),
                log_to_file=get_env("PAGENOTES_LOG_TO_FILE", False),
                log_dir=get_env("PAGENOTES_LOG_DIR", "logs"),
                file_rotation=get_env("PAGENOTES_LOG_FILE_ROTATION", "10 MB"),
                file_retention=get_env("PAGENOTES_LOG_FILE_RETENTION", "7 days"),
                compression=get_env("PAGENOTES_LOG_COMPRESSION", "zip"),
                serialize=get_env("PAGENOTES_LOG_SERIALIZE", True),
            ),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            yaml.YAMLError: If YAML is invalid
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    @classmethod
    def from_env_or_yaml(
        cls, yaml_path: str | Path | None = None, env_file: str | Path | None = None
    ) -> "Config":
        """
        Load configuration with priority: env vars > YAML > defaults.

        Args:
            yaml_path: Optional path to YAML config
            env_file: Optional path to .env file

        Returns:
            Config instance
        """
        if yaml_path and Path(yaml_path).exists():
            with open(yaml_path) as f:
                config_dict = yaml.safe_load(f) or {}
        else:
            config_dict = {}

        env_config = cls.from_env(env_file=env_file)

        # Merge: env vars override YAML, section by section
        final_dict = {**config_dict}
        default = cls()
        for section in ("storage", "notes", "bridge", "logging"):
            if getattr(env_config, section) != getattr(default, section):
                final_dict[section] = getattr(env_config, section).model_dump()

        return cls(**final_dict) if final_dict else env_config

