"""Configuration models for scf-reconciler."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, HttpUrl, SecretStr, field_validator

from scf_reconciler.security.validation import validate_region, validate_uuid

DEFAULT_REGION = "eu01"


class SCFApiConfig(BaseModel):
    """SCF API connection settings."""

    url: HttpUrl = Field(
        HttpUrl("https://scf.api.stackit.cloud"),
        description="SCF API base URL",
    )
    service_account_token: SecretStr = Field(
        ...,
        description="Bearer token of the STACKIT service account",
    )
    timeout_seconds: int = Field(
        30,
        description="Timeout for SCF API calls in seconds",
        ge=1,
    )

    @field_validator("service_account_token")
    @classmethod
    def validate_token(cls, v: SecretStr) -> SecretStr:
        """Validate that the token is not empty."""
        if not v.get_secret_value().strip():
            raise ValueError("Service account token cannot be empty")
        return v

    @property
    def base_url(self) -> str:
        return str(self.url).rstrip("/")


class LoggingConfig(BaseModel):
    """Configuration for structured logging."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format (json or text)")

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(sorted(valid_levels))}")
        return v.upper()

    @field_validator("format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        if v.lower() not in {"json", "text"}:
            raise ValueError("Log format must be 'json' or 'text'")
        return v.lower()


class ReconcilerConfig(BaseModel):
    """Main configuration of the reconciler host."""

    api: SCFApiConfig
    region: str = Field(
        default=DEFAULT_REGION,
        description="STACKIT region every call is scoped to",
    )
    default_project_id: Optional[str] = Field(
        default=None,
        description="Project used when a command does not name one",
    )
    state_dir: Path = Field(
        default=Path("./state"),
        description="Directory holding persisted resource state",
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"validate_assignment": True}

    @field_validator("region")
    @classmethod
    def validate_region_name(cls, v: str) -> str:
        if not validate_region(v):
            raise ValueError(f"Invalid region name: {v!r}")
        return v

    @field_validator("default_project_id")
    @classmethod
    def validate_project_id(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not validate_uuid(v):
            raise ValueError(f"default_project_id must be a UUID, got {v!r}")
        return v

    @classmethod
    def from_env(cls, dotenv_path: Optional[Path] = None) -> "ReconcilerConfig":
        """Create configuration from environment variables.

        A ``.env`` file is loaded first when present; variables already set
        in the environment take precedence.

        Returns:
            ReconcilerConfig instance populated from environment variables.

        Raises:
            ValueError: If required environment variables are missing.
        """
        load_dotenv(dotenv_path)

        token = os.getenv("SCF_SERVICE_ACCOUNT_TOKEN")
        if not token:
            raise ValueError("SCF_SERVICE_ACCOUNT_TOKEN environment variable is required")

        return cls(
            api=SCFApiConfig(
                url=os.getenv("SCF_API_URL", "https://scf.api.stackit.cloud"),
                service_account_token=token,
                timeout_seconds=int(os.getenv("SCF_TIMEOUT_SECONDS", "30")),
            ),
            region=os.getenv("SCF_REGION", DEFAULT_REGION),
            default_project_id=os.getenv("SCF_PROJECT_ID") or None,
            state_dir=Path(os.getenv("SCF_STATE_DIR", "./state")),
            logging=LoggingConfig(
                level=os.getenv("LOG_LEVEL", "INFO"),
                format=os.getenv("LOG_FORMAT", "text"),
            ),
        )
