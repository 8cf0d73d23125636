"""
Configuration for the Knowledge IDE.

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


class PersonaConfig(BaseModel):
    """Persona responder configuration."""

    provider: str = "static"  # static, ollama, openai
    model: str = "llama3.1:8b"
    base_url: str | None = None  # ollama defaults to http://localhost:11434
    api_key: str | None = None
    temperature: float = 0.7
    max_tokens: int = 600
    timeout: float = 60.0


class GatewayConfig(BaseModel):
    """Persistence gateway configuration."""

    backend: str = "sqlite"  # sqlite, memory
    sqlite_path: str = "data/knowledge_ide.db"


class CanvasConfig(BaseModel):
    """Canvas view-transform and geometry settings."""

    min_zoom: float = 0.5
    max_zoom: float = 2.0
    zoom_step: float = 0.1
    # Relationship lines attach at the block centre
    anchor_offset_x: float = 160.0
    anchor_offset_y: float = 80.0


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    log_to_file: bool = True
    log_dir: str = "logs"
    file_rotation: str = "10 MB"
    file_retention: str = "7 days"
    compression: str = "zip"
    serialize: bool = True


class Config(BaseModel):
    """Main configuration."""

    persona: PersonaConfig = Field(default_factory=PersonaConfig)
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    canvas: CanvasConfig = Field(default_factory=CanvasConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # User assumed by the HTTP API when a request carries no X-User-Id header
    default_user_id: str = "local-user"

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "Config":
        """
        Load configuration from environment variables.

        Priority: .env file -> system environment variables -> defaults

        Args:
            env_file: Optional path to .env file (default: .env in project root)

        Returns:
            Config instance

        Environment variables:
            KIDE_PERSONA_PROVIDER: Persona backend (static, ollama, openai)
            KIDE_PERSONA_MODEL: Model name for model-backed personas
            KIDE_PERSONA_BASE_URL: Model server URL
            KIDE_PERSONA_API_KEY: API key (for OpenAI)
            KIDE_GATEWAY_BACKEND: Persistence backend (sqlite, memory)
            KIDE_SQLITE_PATH: SQLite database file
            KIDE_MIN_ZOOM / KIDE_MAX_ZOOM / KIDE_ZOOM_STEP: Canvas zoom limits
            KIDE_LOG_LEVEL: Log level
            KIDE_DEFAULT_USER_ID: Fallback user for the HTTP API
        """
        # Load .env file if provided or exists
        if env_file:
            load_dotenv(env_file)
        elif Path(".env").exists():
            load_dotenv()

        def get_env(key: str, default: Any = None) -> Any:
            """Get environment variable with type conversion."""
            value = os.getenv(key)
            if value is None:
                return default
            # If value is empty string, return default
            if value == "":
                return default
            # Convert boolean strings
            if isinstance(default, bool):
                return str(value).lower() in ("true", "1", "yes")
            # Convert numeric strings
            if isinstance(default, int):
                return int(value)
            if isinstance(default, float):
                return float(value)
            return value

        return cls(
            persona=PersonaConfig(
                provider=get_env("KIDE_PERSONA_PROVIDER", "static"),
                model=get_env("KIDE_PERSONA_MODEL", "llama3.1:8b"),
                base_url=get_env("KIDE_PERSONA_BASE_URL"),
                api_key=get_env("KIDE_PERSONA_API_KEY"),
                temperature=get_env("KIDE_PERSONA_TEMPERATURE", 0.7),
                max_tokens=get_env("KIDE_PERSONA_MAX_TOKENS", 600),
                timeout=get_env("KIDE_PERSONA_TIMEOUT", 60.0),
            ),
            gateway=GatewayConfig(
                backend=get_env("KIDE_GATEWAY_BACKEND", "sqlite"),
                sqlite_path=get_env("KIDE_SQLITE_PATH", "data/knowledge_ide.db"),
            ),
            canvas=CanvasConfig(
                min_zoom=get_env("KIDE_MIN_ZOOM", 0.5),
                max_zoom=get_env("KIDE_MAX_ZOOM", 2.0),
                zoom_step=get_env("KIDE_ZOOM_STEP", 0.1),
            ),
            logging=LoggingConfig(
                level=get_env("KIDE_LOG_LEVEL", "INFO"),
                log_to_file=get_env("KIDE_LOG_TO_FILE", True),
                log_dir=get_env("KIDE_LOG_DIR", "logs"),
                file_rotation=get_env("KIDE_LOG_FILE_ROTATION", "10 MB"),
                file_retention=get_env("KIDE_LOG_FILE_RETENTION", "7 days"),
                compression=get_env("KIDE_LOG_COMPRESSION", "zip"),
                serialize=get_env("KIDE_LOG_SERIALIZE", True),
            ),
            default_user_id=get_env("KIDE_DEFAULT_USER_ID", "local-user"),
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
            data = yaml.safe_load(f)

        return cls(**(data or {}))

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

        # Merge: env vars override YAML
        final_dict = {**config_dict}

        # Apply env overrides (non-default values)
        default = cls()
        if env_config.persona != default.persona:
            final_dict["persona"] = env_config.persona.model_dump()
        if env_config.gateway != default.gateway:
            final_dict["gateway"] = env_config.gateway.model_dump()
        if env_config.canvas != default.canvas:
            final_dict["canvas"] = env_config.canvas.model_dump()
        if env_config.logging != default.logging:
            final_dict["logging"] = env_config.logging.model_dump()
        if env_config.default_user_id != default.default_user_id:
            final_dict["default_user_id"] = env_config.default_user_id

        return cls(**final_dict) if final_dict else env_config


# Default config instance
default_config = Config()
